GAS_BUFFER_MULTIPLIER = 1.1
SUGGESTED_PRIORITY_FEE_MULTIPLIER = 1.5
SUGGESTED_GAS_PRICE_MULTIPLIER = 1.5
MAX_BASE_FEE_GROWTH_MULTIPLIER = 2

# Receipt polling defaults (seconds). Some RPCs take a while to index receipts
# even after the transaction is mined.
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_RECEIPT_TIMEOUT = 180
DEFAULT_CONFIRMATIONS = 1

MAX_UINT256 = 2**256 - 1
