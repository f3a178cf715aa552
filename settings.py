from config.loader import CONFIG_DIR, DEFAULT_TOKEN_FILE, get_config_loader

# Get the config loader instance
config = get_config_loader()

# Logging
LOG_LEVEL = config.get("SPOTIFY_TMUX_LOG_LEVEL", "warning")
# The TUI owns the terminal, so log records always go to a file
LOG_FILE = config.get("SPOTIFY_TMUX_LOG_FILE", str(CONFIG_DIR / "spotify-tmux.log"))

# Presentation loop
POLL_INTERVAL = config.get("SPOTIFY_TMUX_POLL_INTERVAL", 1.0)

# Timeout configuration
# Interactive login: how long to wait for the browser redirect
LOGIN_TIMEOUT = config.get("SPOTIFY_TMUX_LOGIN_TIMEOUT", 300)
# Token endpoint and Web API requests
REQUEST_TIMEOUT = config.get("SPOTIFY_TMUX_REQUEST_TIMEOUT", 10.0)

# OAuth configuration (hardcoded - not user configurable)
AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"
SCOPES = [
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
]
# Tokens are treated as expired this many seconds early
TOKEN_EXPIRY_SKEW = 10

# Spotify Web API
API_BASE = "https://api.spotify.com/v1"

# Token storage
TOKEN_FILE = str(DEFAULT_TOKEN_FILE)
