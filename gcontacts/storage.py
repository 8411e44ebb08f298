"""
Google Contacts Client Credential Storage Implementations

Provides storage backends for the refresh/access token record.
"""

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import CredentialLoadError, CredentialSaveError
from .types import AuthDetails


class MemoryStorage:
    """In-memory credential storage (non-persistent)."""

    def __init__(self, auth_details: Optional[AuthDetails] = None) -> None:
        initial = auth_details or AuthDetails()
        self._data: Dict[str, str] = initial.to_dict()
        self._lock = threading.Lock()

    def load(self) -> AuthDetails:
        """Return a copy of the stored record."""
        with self._lock:
            return AuthDetails.from_dict(self._data)

    def save(self, auth_details: AuthDetails) -> None:
        """Replace the stored record."""
        with self._lock:
            self._data = auth_details.to_dict()


class FileStorage:
    """JSON file credential storage, e.g. {"refresh_token": "XYZ"}."""

    def __init__(self, file_path: str) -> None:
        """
        Initialize file storage.

        Args:
            file_path: Path to the JSON credential file
        """
        self._file_path = Path(file_path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._file_path

    def _read_data(self) -> Dict[str, Any]:
        """Read the credential object from file."""
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise CredentialLoadError(
                f"couldn't read credential file {self._file_path}: {e}",
                {"path": str(self._file_path)},
            ) from e
        except json.JSONDecodeError as e:
            raise CredentialLoadError(
                f"credential file {self._file_path} is not valid JSON: {e}",
                {"path": str(self._file_path)},
            ) from e
        if not isinstance(data, dict):
            raise CredentialLoadError(
                f"credential file {self._file_path} must hold a JSON object",
                {"path": str(self._file_path)},
            )
        return data

    def _write_data(self, data: Dict[str, Any]) -> None:
        """Write the credential object to file."""
        try:
            with open(self._file_path, "w", encoding="utf-8") as f:
                json.dump(data, f)
            # Owner read/write only
            os.chmod(self._file_path, 0o600)
        except OSError as e:
            raise CredentialSaveError(
                f"couldn't write credential file {self._file_path}: {e}",
                {"path": str(self._file_path)},
            ) from e

    def load(self) -> AuthDetails:
        """Load the credential record."""
        with self._lock:
            return AuthDetails.from_dict(self._read_data())

    def save(self, auth_details: AuthDetails) -> None:
        """Persist the credential record."""
        with self._lock:
            self._write_data(auth_details.to_dict())
