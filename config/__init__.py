"""Configuration management package for spotify-tmux"""

from .loader import (
    CONFIG_DIR,
    CONFIG_FILE,
    DEFAULT_REDIRECT_URI,
    DEFAULT_TOKEN_FILE,
    AppConfig,
    ConfigInvalidError,
    ConfigLoader,
    get_config_loader,
    load_app_config,
    save_app_config,
)

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "DEFAULT_REDIRECT_URI",
    "DEFAULT_TOKEN_FILE",
    "AppConfig",
    "ConfigInvalidError",
    "ConfigLoader",
    "get_config_loader",
    "load_app_config",
    "save_app_config",
]
