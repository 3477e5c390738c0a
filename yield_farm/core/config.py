import json
import os
from pathlib import Path
from typing import Any

from eth_utils import to_checksum_address
from pydantic import BaseModel, Field, field_validator

from yield_farm.core.constants.base import (
    DEFAULT_CONFIRMATIONS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RECEIPT_TIMEOUT,
)
from yield_farm.core.constants.chains import CHAIN_ID_WESTEND_ASSET_HUB

_CONFIG_ENV_KEYS = ("YIELD_FARM_CONFIG_PATH", "YIELD_FARM_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_WALLET_MNEMONIC_KEY = "wallet_mnemonic"


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except json.JSONDecodeError:
        return {}


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("strategy", {}).get("rpc_urls", {})


def get_log_level() -> str:
    system = CONFIG.get("system", {})
    return str(system.get("log_level") or "INFO").upper()


def get_wallets() -> list[dict[str, Any]]:
    wallets = CONFIG.get("wallets", [])
    return [w for w in wallets if isinstance(w, dict)]


def load_wallet_mnemonic() -> str | None:
    value = CONFIG.get(_WALLET_MNEMONIC_KEY)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class FarmSettings(BaseModel):
    """The `farm` section of the config file."""

    chain_id: int = CHAIN_ID_WESTEND_ASSET_HUB
    yield_farm_address: str | None = None
    lp_token_address: str | None = None
    ambient_address: str | None = None
    embedded_wallet_label: str = "embedded"
    embedded_account_index: int = Field(default=0, ge=0)
    confirmations: int = Field(default=DEFAULT_CONFIRMATIONS, ge=1)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    receipt_timeout: float = Field(default=DEFAULT_RECEIPT_TIMEOUT, gt=0)
    batch_fallback: bool = True
    explorer_url: str | None = None

    @field_validator(
        "yield_farm_address", "lp_token_address", "ambient_address", mode="before"
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def require_addresses(self) -> tuple[str, str]:
        if not self.yield_farm_address:
            raise ValueError("farm.yield_farm_address is not configured")
        if not self.lp_token_address:
            raise ValueError("farm.lp_token_address is not configured")
        return (
            to_checksum_address(self.yield_farm_address),
            to_checksum_address(self.lp_token_address),
        )


def get_farm_settings() -> FarmSettings:
    raw = CONFIG.get("farm", {})
    return FarmSettings.model_validate(raw if isinstance(raw, dict) else {})
