from ayla_lsp.config.loader import CONFIG_FILENAME, discover_config_path, load_config
from ayla_lsp.config.types import AnalysisSettings, AylaConfig, LogLevel, ServerSettings

__all__ = [
    "CONFIG_FILENAME",
    "AnalysisSettings",
    "AylaConfig",
    "LogLevel",
    "ServerSettings",
    "discover_config_path",
    "load_config",
]
