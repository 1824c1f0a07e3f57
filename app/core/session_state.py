# File: app/core/session_state.py
"""
Session/role mirror.

Caches the "is logged in" and "is admin" facts from the last successful
admin login so a reload does not force a new sign-in. It is a cache of
server-verified facts only: protected endpoints always re-check the bearer
token and the user's role (see app.core.security.require_admin).

Persistence goes through a FlagStore port. CookieFlagStore keeps the two
flags in cookies, MemoryFlagStore keeps them in a dict.
"""
import json
import logging
from typing import Optional, Protocol

from fastapi import Request, Response

from app.core.config import settings

logger = logging.getLogger(__name__)

AUTH_KEY = "isAuthenticated"
ADMIN_KEY = "isAdmin"


class FlagStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class MemoryFlagStore:
    def __init__(self, initial: Optional[dict] = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class CookieFlagStore:
    """Reads flags from the request cookies and writes them to the response."""

    def __init__(self, request: Request, response: Response):
        self.request = request
        self.response = response
        self._pending: dict[str, Optional[str]] = {}

    def get(self, key: str) -> Optional[str]:
        if key in self._pending:
            return self._pending[key]
        return self.request.cookies.get(key)

    def set(self, key: str, value: str) -> None:
        self._pending[key] = value
        self.response.set_cookie(
            key,
            value,
            httponly=True,
            samesite="lax",
            secure=settings.session_cookie_secure,
        )

    def remove(self, key: str) -> None:
        self._pending[key] = None
        self.response.delete_cookie(key)


class SessionMirror:
    def __init__(self, store: FlagStore):
        self._store = store
        self._is_authenticated = False
        self._is_admin = False
        self._auth_loading = True
        self._admin_loading = True

    @property
    def is_authenticated(self) -> bool:
        return self._is_authenticated

    @property
    def is_admin(self) -> bool:
        return self._is_admin

    @property
    def auth_loading(self) -> bool:
        return self._auth_loading

    @property
    def admin_loading(self) -> bool:
        return self._admin_loading

    @property
    def loading(self) -> bool:
        return self._auth_loading or self._admin_loading

    def load(self) -> "SessionMirror":
        try:
            self._is_authenticated = self._store.get(AUTH_KEY) == "true"
        except Exception:
            logger.error("Error reading %s from flag store", AUTH_KEY, exc_info=True)
            self._is_authenticated = False
        finally:
            self._auth_loading = False

        try:
            raw = self._store.get(ADMIN_KEY)
            self._is_admin = bool(json.loads(raw)) if raw else False
        except (ValueError, TypeError):
            logger.warning("Ignoring unreadable %s flag", ADMIN_KEY)
            self._is_admin = False
        except Exception:
            logger.error("Error reading %s from flag store", ADMIN_KEY, exc_info=True)
            self._is_admin = False
        finally:
            self._admin_loading = False

        # role cannot outlive the session
        if not self._is_authenticated and self._is_admin:
            self.unset_as_admin()
        return self

    def login(self) -> None:
        self._store.set(AUTH_KEY, "true")
        self._is_authenticated = True

    def logout(self) -> None:
        self._store.remove(AUTH_KEY)
        self._is_authenticated = False
        self.unset_as_admin()

    def set_as_admin(self) -> None:
        if not self._is_authenticated:
            logger.warning("set_as_admin called without an authenticated session; ignored")
            return
        self._is_admin = True
        self._store.set(ADMIN_KEY, json.dumps(True))

    def unset_as_admin(self) -> None:
        self._is_admin = False
        self._store.remove(ADMIN_KEY)

    def snapshot(self) -> dict:
        return {
            "isAuthenticated": self._is_authenticated,
            "isAdmin": self._is_admin,
            "loading": self.loading,
        }


def get_session_mirror(request: Request, response: Response) -> SessionMirror:
    return SessionMirror(CookieFlagStore(request, response)).load()
