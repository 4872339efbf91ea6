# src/vacancies/clients/credentials.py
"""
Where the API key lives.

The gateway only ever calls `get()` (once per request) and never caches or
writes the token. A store that cannot be read behaves as if no key is set.
"""

from __future__ import annotations
import logging
import os
from typing import Optional, Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "vdab"
API_KEY_ENTRY = "vdab_api_key"
API_KEY_ENV = "VDAB_API_KEY"


class CredentialStore(Protocol):
    def get(self) -> Optional[str]: ...

    def set(self, value: str) -> None: ...

    def delete(self) -> None: ...


class MemoryCredentialStore:
    """Keeps the key in process memory (tests, --api-key)."""

    def __init__(self, value: Optional[str] = None) -> None:
        self._value = value or None

    def get(self) -> Optional[str]:
        return self._value

    def set(self, value: str) -> None:
        self._value = value or None

    def delete(self) -> None:
        self._value = None


class EnvCredentialStore:
    """Reads the key from an environment variable; set/delete only affect this process."""

    def __init__(self, name: str = API_KEY_ENV) -> None:
        self.name = name

    def get(self) -> Optional[str]:
        return os.environ.get(self.name) or None

    def set(self, value: str) -> None:
        os.environ[self.name] = value

    def delete(self) -> None:
        os.environ.pop(self.name, None)


class KeyringCredentialStore:
    """The operating system's secure credential storage, via `keyring`."""

    def __init__(self, service: str = KEYRING_SERVICE, entry: str = API_KEY_ENTRY) -> None:
        self.service = service
        self.entry = entry

    def get(self) -> Optional[str]:
        try:
            return keyring.get_password(self.service, self.entry) or None
        except KeyringError as e:
            logger.warning("Could not read API key from keyring (%s); continuing unauthenticated", e)
            return None

    def set(self, value: str) -> None:
        keyring.set_password(self.service, self.entry, value)

    def delete(self) -> None:
        try:
            keyring.delete_password(self.service, self.entry)
        except PasswordDeleteError:
            pass  # nothing stored
