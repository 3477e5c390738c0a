from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount
from loguru import logger

from yield_farm.core.config import (
    get_farm_settings,
    get_wallets,
    load_wallet_mnemonic,
)
from yield_farm.core.utils.wallets import (
    find_wallet,
    make_wallet_from_mnemonic,
    wallet_private_key,
)


class EmbeddedSigner:
    """A locally held key that signs without an external wallet."""

    def __init__(self, account: LocalAccount):
        self._account = account

    @classmethod
    def from_private_key(cls, private_key: str) -> EmbeddedSigner:
        return cls(Account.from_key(private_key))

    @property
    def address(self) -> str:
        return self._account.address

    async def sign_transaction(self, transaction: dict[str, Any]) -> bytes:
        signed = self._account.sign_transaction(transaction)
        return signed.raw_transaction

    def __repr__(self) -> str:
        return f"EmbeddedSigner(address={self.address})"


@dataclass(frozen=True)
class EmbeddedSigning:
    signer: EmbeddedSigner


@dataclass(frozen=True)
class AmbientSigning:
    pass


SigningPath = EmbeddedSigning | AmbientSigning


class SignerResolverProtocol(Protocol):
    async def resolve(self) -> EmbeddedSigner | None: ...


class ConfigSignerResolver:
    """Find the embedded signer in config.

    A wallet whose label matches ``farm.embedded_wallet_label`` wins; otherwise
    the configured mnemonic is derived at ``farm.embedded_account_index``.
    """

    async def resolve(self) -> EmbeddedSigner | None:
        settings = get_farm_settings()

        wallet = find_wallet(get_wallets(), settings.embedded_wallet_label)
        if wallet is not None:
            private_key = wallet_private_key(wallet)
            if private_key:
                return EmbeddedSigner.from_private_key(private_key)
            logger.warning(
                f"Wallet {settings.embedded_wallet_label!r} has no private key; "
                "falling back to mnemonic"
            )

        mnemonic = load_wallet_mnemonic()
        if mnemonic:
            derived = make_wallet_from_mnemonic(
                mnemonic, account_index=settings.embedded_account_index
            )
            return EmbeddedSigner.from_private_key(derived["private_key_hex"])

        return None


async def resolve_signing_path(resolver: SignerResolverProtocol) -> SigningPath:
    """Pick embedded or ambient signing for one submission.

    A resolver failure counts as "no embedded signer".
    """
    try:
        signer = await resolver.resolve()
    except Exception as exc:
        logger.warning(f"Signer resolution failed, using connected wallet: {exc}")
        return AmbientSigning()
    if signer is None:
        return AmbientSigning()
    return EmbeddedSigning(signer)
