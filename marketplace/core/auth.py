"""
Auth collaborator.

``AuthClient`` owns sign-up, sign-in and sessions on top of the record
store's ``users`` collection. Sessions are JWT bearer tokens; ``logout``
revokes a token's ``jti`` in process memory until the token expires.
Interested parts of the application subscribe with ``on_auth_state_changed``
and are called with an ``AuthState`` on every sign-in and logout.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from marketplace.core.config import Settings
from marketplace.core.errors import NotAuthenticated
from marketplace.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from marketplace.services.lifecycle import Role
from marketplace.store.base import Record, RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthState:
    user: Optional[Record]
    is_loading: bool = False


AuthListener = Callable[[AuthState], None]


def public_user(user: Record) -> Record:
    return {k: v for k, v in user.items() if k != "password_hash"}


class AuthClient:
    def __init__(self, store: RecordStore, settings: Settings):
        self.store = store
        self.settings = settings
        self._listeners: List[AuthListener] = []
        self._revoked: Dict[str, float] = {}  # jti -> exp
        self._lock = threading.Lock()

    def on_auth_state_changed(self, callback: AuthListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, state: AuthState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("Auth state listener failed")

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None,
                role: str = Role.CUSTOMER.value, phone: Optional[str] = None) -> Record:
        email = email.strip().lower()
        if self.store.list("users", where={"email": email}, limit=1):
            raise ValueError("Email already registered")

        user = self.store.create(
            "users",
            {
                "email": email,
                "display_name": display_name,
                "password_hash": hash_password(password),
                "role": Role(role).value,
                "phone": phone,
            },
        )
        logger.info("User registered", extra={"user_id": user["id"]})
        return public_user(user)

    def sign_in(self, email: str, password: str) -> str:
        users = self.store.list("users", where={"email": email.strip().lower()}, limit=1)
        if not users or not verify_password(password, users[0]["password_hash"]):
            raise NotAuthenticated("Invalid credentials")

        user = users[0]
        token = create_access_token(
            user["id"],
            self.settings.SECRET_KEY,
            algorithm=self.settings.ALGORITHM,
            expires_minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES,
            extra={"role": user["role"]},
        )
        logger.info("User signed in", extra={"user_id": user["id"]})
        self._notify(AuthState(user=public_user(user)))
        return token

    def _prune_revoked(self) -> None:
        """Drop revoked jtis whose token has expired anyway. Caller holds the lock."""
        now = time.time()
        for jti in [jti for jti, exp in self._revoked.items() if exp <= now]:
            del self._revoked[jti]

    def _claims(self, token: str) -> Dict[str, Any]:
        claims = decode_access_token(token, self.settings.SECRET_KEY, self.settings.ALGORITHM)
        with self._lock:
            self._prune_revoked()
            revoked = claims.get("jti") in self._revoked
        if revoked:
            raise NotAuthenticated("Session has been logged out")
        return claims

    def me(self, token: str) -> Record:
        claims = self._claims(token)
        user = self.store.get("users", claims.get("sub"))
        if user is None:
            raise NotAuthenticated("User no longer exists")
        return public_user(user)

    def logout(self, token: str) -> None:
        claims = self._claims(token)
        with self._lock:
            self._revoked[claims.get("jti")] = float(claims.get("exp", 0))
        logger.info("User logged out", extra={"user_id": claims.get("sub")})
        self._notify(AuthState(user=None))

    def close(self) -> None:
        with self._lock:
            self._listeners.clear()
