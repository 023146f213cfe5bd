# Overview: Signed-in admin identity persisted in client-durable storage.

"""
Admin session storage.

SessionStore is the whole contract: store / read / clear one identity under
SESSION_KEY in some mutable mapping. In the web app the mapping is Flask's
signed cookie session; tests pass a plain dict.

read() never raises: a missing key, unparsable JSON or a payload that is not
an identity all mean "signed out".

SessionProvider is built once by create_app() and handed to whatever needs
the current identity (see extensions.get_session_provider), instead of a
module-level global loaded on first use.
"""
from __future__ import annotations

import json
from typing import Callable, MutableMapping


SESSION_KEY = "admin_session"

IDENTITY_FIELDS = ("id", "username", "email", "is_active", "created_at", "updated_at")


class SessionDecodeError(ValueError):
    """Stored session content is corrupt."""


def encode_identity(identity: dict) -> str:
    return json.dumps({k: identity.get(k) for k in IDENTITY_FIELDS}, sort_keys=True)


def decode_identity(raw) -> dict:
    if not isinstance(raw, str):
        raise SessionDecodeError("Session value is not a string")
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise SessionDecodeError("Session value is not valid JSON") from e
    if not isinstance(data, dict):
        raise SessionDecodeError("Session value is not an object")
    if data.get("id") is None or not isinstance(data.get("username"), str):
        raise SessionDecodeError("Session value is missing identity fields")
    return data


class SessionStore:
    def __init__(self, storage: MutableMapping):
        self.storage = storage

    def store(self, identity: dict) -> None:
        self.storage[SESSION_KEY] = encode_identity(identity)

    def read(self) -> dict | None:
        raw = self.storage.get(SESSION_KEY)
        if raw is None:
            return None
        try:
            return decode_identity(raw)
        except SessionDecodeError:
            return None

    def clear(self) -> None:
        self.storage.pop(SESSION_KEY, None)


class SessionProvider:
    """Per-app entry point; storage_factory returns the current request's storage."""

    def __init__(self, storage_factory: Callable[[], MutableMapping]):
        self._storage_factory = storage_factory

    def _store(self) -> SessionStore:
        return SessionStore(self._storage_factory())

    def login(self, identity: dict) -> None:
        self._store().store(identity)

    def logout(self) -> None:
        self._store().clear()

    def current(self) -> dict | None:
        return self._store().read()
