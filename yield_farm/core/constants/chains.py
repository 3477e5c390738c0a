CHAIN_ID_WESTEND_ASSET_HUB = 420420421
CHAIN_ID_LOCAL = 31337

CHAIN_CODE_TO_ID = {
    "westend-asset-hub": CHAIN_ID_WESTEND_ASSET_HUB,
    "westend": CHAIN_ID_WESTEND_ASSET_HUB,
    "local": CHAIN_ID_LOCAL,
    "anvil": CHAIN_ID_LOCAL,
}

CHAIN_ID_TO_CODE: dict[int, str] = {
    v: k for k, v in CHAIN_CODE_TO_ID.items() if k not in ("westend", "anvil")
}

SUPPORTED_CHAINS = [
    CHAIN_ID_WESTEND_ASSET_HUB,
    CHAIN_ID_LOCAL,
]

# Chains whose RPC does not serve EIP-1559 fee data reliably.
PRE_EIP_1559_CHAIN_IDS: set[int] = {
    CHAIN_ID_WESTEND_ASSET_HUB,
}

CHAIN_EXPLORER_URLS: dict[int, str] = {
    CHAIN_ID_WESTEND_ASSET_HUB: "https://blockscout-asset-hub.parity-chains-scw.parity.io/",
}
