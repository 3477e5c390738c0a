from yield_farm.core.clients import ChainClient, ChainClientProtocol
from yield_farm.core.config import CONFIG, FarmSettings, get_farm_settings

__all__ = [
    "CONFIG",
    "ChainClient",
    "ChainClientProtocol",
    "FarmSettings",
    "get_farm_settings",
]
