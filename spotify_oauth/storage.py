"""Token storage for Spotify OAuth"""

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from settings import TOKEN_FILE
from .errors import CorruptCredentialsError, CredentialIOError
from .models import TokenRecord, utc_now

logger = logging.getLogger(__name__)


class CredentialStore:
    """Persists the single TokenRecord with owner-only file permissions"""

    def __init__(self, token_file: Optional[str] = None):
        self.token_path = Path(token_file if token_file else TOKEN_FILE).expanduser()

    def _ensure_secure_directory(self):
        """Create parent directory with secure permissions"""
        parent_dir = self.token_path.parent
        if not parent_dir.exists():
            parent_dir.mkdir(parents=True, exist_ok=True)
            # Set directory permissions to 700 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(parent_dir, 0o700)

    def load(self) -> Optional[TokenRecord]:
        """Load the stored record

        Returns:
            The record, or None when no token file exists

        Raises:
            CredentialIOError: If the file cannot be read
            CorruptCredentialsError: If the file content is malformed
        """
        if not self.token_path.exists():
            logger.debug(f"No token file at {self.token_path}")
            return None

        try:
            raw = self.token_path.read_bytes()
        except OSError as e:
            raise CredentialIOError(f"Failed to read token file {self.token_path}: {e}") from e

        try:
            record = TokenRecord.from_dict(json.loads(raw.decode("utf-8")))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise CorruptCredentialsError(f"Token file {self.token_path} is malformed: {e}") from e

        logger.debug(f"Loaded token from {self.token_path}")
        return record

    def save(self, record: TokenRecord) -> None:
        """Write the record atomically

        The record is written to a temporary file in the same directory and
        renamed over the token file, so readers never see a partial write.

        Raises:
            CredentialIOError: If the file cannot be written
        """
        try:
            self._ensure_secure_directory()
            fd, tmp_name = tempfile.mkstemp(
                dir=self.token_path.parent,
                prefix=f".{self.token_path.name}.",
                suffix=".tmp",
            )
        except OSError as e:
            raise CredentialIOError(f"Failed to prepare token file {self.token_path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())

            # mkstemp already creates the file as 0600 on Unix
            if platform.system() != "Windows":
                os.chmod(tmp_name, 0o600)

            os.replace(tmp_name, self.token_path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise CredentialIOError(f"Failed to write token file {self.token_path}: {e}") from e

        logger.debug(f"Saved token to {self.token_path}")

    def clear(self) -> bool:
        """Remove stored tokens

        Returns:
            True if the file is gone afterwards
        """
        try:
            if self.token_path.exists():
                self.token_path.unlink()
                logger.info(f"Cleared tokens at {self.token_path}")
            return True
        except OSError as e:
            logger.error(f"Failed to clear tokens: {e}")
            return False

    def get_status(self) -> Dict[str, Any]:
        """Get token status without exposing secrets"""
        try:
            record = self.load()
        except (CorruptCredentialsError, CredentialIOError) as e:
            return {
                "has_tokens": False,
                "is_expired": True,
                "expires_at": None,
                "time_until_expiry": "Unreadable token file",
                "has_refresh_token": False,
                "client_id": None,
                "error": str(e),
            }

        if record is None:
            return {
                "has_tokens": False,
                "is_expired": True,
                "expires_at": None,
                "time_until_expiry": "No tokens",
                "has_refresh_token": False,
                "client_id": None,
            }

        now = utc_now()
        expires_str = record.expiry.isoformat()
        is_expired = record.is_expired(now)
        seconds = int((record.expiry - now).total_seconds())

        if seconds <= 0:
            time_since = -seconds
            hours_since = time_since // 3600
            mins_since = (time_since % 3600) // 60

            if hours_since > 0:
                time_str = f"{hours_since}h {mins_since}m ago"
            else:
                time_str = f"{mins_since}m ago"
        else:
            hours = seconds // 3600
            minutes = (seconds % 3600) // 60
            if hours > 0:
                time_str = f"{hours}h {minutes}m"
            else:
                time_str = f"{minutes}m"

        return {
            "has_tokens": True,
            "is_expired": is_expired,
            "expires_at": expires_str,
            "time_until_expiry": time_str,
            "expires_in_seconds": max(seconds, 0),
            "has_refresh_token": bool(record.refresh_token),
            "client_id": record.client_id,
            "last_refresh": record.last_refresh.isoformat(),
        }

    @property
    def token_file(self) -> Path:
        """Get the token file path"""
        return self.token_path
