"""
API key lookup.

Adapters never discover credentials themselves: a ``KeyStore`` is resolved
once at process start and handed to the adapter factory.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, Union

from dotenv import load_dotenv

from .constants import KEYS_FILE_ENV_VAR

logger = logging.getLogger(__name__)


class MissingKeyError(KeyError):
    """Raised when a required API key is not configured."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"API key '{self.name}' is not set (checked keys file and environment)"


class KeyStore(Protocol):
    """Read-only credential source."""

    def get_key(self, name: str) -> str:
        ...

    def has_key(self, name: str) -> bool:
        ...


class StaticKeyStore:
    """Key store backed by an in-memory mapping."""

    def __init__(self, keys: Optional[Mapping[str, str]] = None):
        self._keys: Dict[str, str] = dict(keys or {})

    def get_key(self, name: str) -> str:
        value = self._keys.get(name)
        if not value:
            raise MissingKeyError(name)
        return value

    def has_key(self, name: str) -> bool:
        return bool(self._keys.get(name))


class EnvKeyStore:
    """
    Key store that reads a ``keys.json`` file first, then the environment.

    The ``.env`` file is loaded once at construction through python-dotenv.
    The keys file path comes from the constructor or the ``RELAY_KEYS_FILE``
    environment variable; a missing file is not an error.
    """

    def __init__(self, keys_file: Optional[Union[str, Path]] = None, load_env: bool = True):
        if load_env:
            load_dotenv()
        path = keys_file or os.getenv(KEYS_FILE_ENV_VAR)
        self._file_keys: Dict[str, str] = self._read_keys_file(Path(path)) if path else {}

    @staticmethod
    def _read_keys_file(path: Path) -> Dict[str, str]:
        if not path.exists():
            logger.debug(f"Keys file {path} not found, using environment only")
            return {}
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Keys file {path} must contain a JSON object")
        return {str(k): str(v) for k, v in data.items() if v}

    def get_key(self, name: str) -> str:
        value = self._file_keys.get(name) or os.getenv(name)
        if not value:
            raise MissingKeyError(name)
        return value

    def has_key(self, name: str) -> bool:
        return bool(self._file_keys.get(name) or os.getenv(name))
