"""Configuration loader for spotify-tmux

Runtime settings are resolved with the following priority:
1. Environment variables (highest priority)
2. .env file
3. Hardcoded defaults (lowest priority)

Spotify application credentials additionally come from the per-user
config file (~/.spotify-tmux/config.json), which sits between the
defaults and the SPOTIFY_* environment variables.
"""

import json
import logging
import os
import platform
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse
from dotenv import load_dotenv

# Set up logger for config loader
logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".spotify-tmux"
CONFIG_FILE = CONFIG_DIR / "config.json"
DEFAULT_TOKEN_FILE = CONFIG_DIR / "token.json"
DEFAULT_REDIRECT_URI = "http://localhost:8080/callback"


class ConfigInvalidError(Exception):
    """Raised when the Spotify application credentials are missing or unusable"""


class ConfigLoader:
    """Handles loading configuration from various sources"""

    def __init__(self, env_path: Optional[str] = None):
        """Initialize the config loader

        Args:
            env_path: Optional path to .env file.
                     Defaults to '.env' in the current directory.
        """
        self.env_path = Path(env_path) if env_path else Path(".env")
        self._load_env_file()

    def _load_env_file(self):
        """Load environment variables from .env file if it exists"""
        if self.env_path.exists():
            load_dotenv(dotenv_path=self.env_path)
            logger.debug(f"Loaded environment variables from {self.env_path}")
        else:
            logger.debug(f".env file not found at {self.env_path}, using environment variables and defaults only")

    def get(self, env_var: str, default: Any) -> Any:
        """Get a configuration value with priority: env > default

        Args:
            env_var: Environment variable name to check
            default: Default value if not found in environment

        Returns:
            The configuration value from environment or default
        """
        env_value = os.getenv(env_var)
        if env_value is not None:
            # bool must be checked before int (bool is an int subclass)
            if isinstance(default, bool):
                return env_value.lower() in ('true', '1', 'yes')
            elif isinstance(default, int):
                try:
                    return int(env_value)
                except ValueError:
                    logger.warning(f"Failed to parse {env_var}={env_value} as int, using default: {default}")
                    return default
            elif isinstance(default, float):
                try:
                    return float(env_value)
                except ValueError:
                    logger.warning(f"Failed to parse {env_var}={env_value} as float, using default: {default}")
                    return default
            return env_value

        if isinstance(default, str) and default.startswith("~/"):
            return str(Path(default).expanduser())
        return default


# Create a global instance
_config_loader = None

def get_config_loader() -> ConfigLoader:
    """Get or create the global ConfigLoader instance"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


@dataclass
class AppConfig:
    """Spotify application credentials and token location"""
    client_id: str
    client_secret: str
    redirect_uri: str = DEFAULT_REDIRECT_URI
    token_file: str = str(DEFAULT_TOKEN_FILE)

    def validate(self) -> None:
        """Raise ConfigInvalidError if the credentials or redirect URI are unusable"""
        if not self.client_id or not self.client_secret:
            raise ConfigInvalidError(
                "Spotify client ID and secret must be provided "
                "(set SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET or add them to "
                f"{CONFIG_FILE})"
            )
        if not self.redirect_uri:
            raise ConfigInvalidError("Spotify redirect URI must not be empty")

        # The callback listener binds the redirect URI's host and port
        parsed = urlparse(self.redirect_uri)
        try:
            parsed.port
        except ValueError as e:
            raise ConfigInvalidError(f"Spotify redirect URI has an invalid port: {self.redirect_uri!r}") from e
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ConfigInvalidError(
                f"Spotify redirect URI must be an http URL with a host: {self.redirect_uri!r}"
            )


def default_app_config() -> AppConfig:
    """Defaults, seeded from the unprefixed CLIENT_ID / CLIENT_SECRET variables"""
    return AppConfig(
        client_id=os.getenv("CLIENT_ID", ""),
        client_secret=os.getenv("CLIENT_SECRET", ""),
    )


def load_app_config(config_file: Optional[Path] = None, validate: bool = True) -> AppConfig:
    """Load Spotify credentials from defaults, the config file and the environment

    Args:
        config_file: Path to config.json (default: ~/.spotify-tmux/config.json)
        validate: Whether to reject configs without client credentials

    Returns:
        The resolved AppConfig

    Raises:
        ConfigInvalidError: If the file is malformed or credentials are missing
    """
    get_config_loader()
    path = Path(config_file) if config_file else CONFIG_FILE
    config = default_app_config()

    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise ConfigInvalidError(f"Config file {path} contains invalid JSON: {e}") from e
        except OSError as e:
            raise ConfigInvalidError(f"Failed to read config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigInvalidError(f"Config file {path} must contain a JSON object")

        for field_name in ("client_id", "client_secret", "redirect_uri", "token_file"):
            value = data.get(field_name)
            if isinstance(value, str) and value:
                setattr(config, field_name, value)
        logger.debug(f"Loaded Spotify config from {path}")
    else:
        logger.debug(f"Config file not found at {path}, using environment only")

    overrides: Dict[str, str] = {
        "SPOTIFY_CLIENT_ID": "client_id",
        "SPOTIFY_CLIENT_SECRET": "client_secret",
        "SPOTIFY_REDIRECT_URI": "redirect_uri",
        "SPOTIFY_TOKEN_FILE": "token_file",
    }
    for env_var, field_name in overrides.items():
        value = os.getenv(env_var)
        if value:
            setattr(config, field_name, value)

    config.token_file = str(Path(config.token_file).expanduser())

    if validate:
        config.validate()
    return config


def save_app_config(config: AppConfig, config_file: Optional[Path] = None) -> Path:
    """Persist the config to disk with owner-only permissions

    Args:
        config: Config to write
        config_file: Destination (default: ~/.spotify-tmux/config.json)

    Returns:
        Path the config was written to
    """
    path = Path(config_file) if config_file else CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    # Holds the client secret: mkstemp creates the file 0600 and
    # os.replace swaps it in atomically
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(asdict(config), f, indent=2)
            f.flush()
            os.fsync(f.fileno())

        if platform.system() != "Windows":
            os.chmod(tmp_name, 0o600)

        os.replace(tmp_name, path)
    except OSError:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise

    logger.info(f"Saved Spotify config to {path}")
    return path
