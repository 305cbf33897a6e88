"""Configuration: constants, key stores and provider profiles.

``config.providers`` is imported directly by callers; it depends on the
models package, which itself imports ``config.constants``.
"""

from .keys import EnvKeyStore, KeyStore, MissingKeyError, StaticKeyStore

__all__ = [
    "EnvKeyStore",
    "KeyStore",
    "MissingKeyError",
    "StaticKeyStore",
]
