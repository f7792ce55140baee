"""Authentication collaborator interface.

Records never depend on auth state beyond the optional ``user_id`` used to
scope storage keys. ``GuestAuthProvider`` stands in when no real identity
provider is configured.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from fintrack.domain import new_id
from fintrack.errors import ExternalServiceError

logger = logging.getLogger(__name__)

AUTH_ERROR_MESSAGES: Dict[str, str] = {
    "user-not-found": "No account found with this email address",
    "wrong-password": "Incorrect password",
    "email-already-in-use": "An account with this email already exists",
    "weak-password": "Password is too weak",
    "invalid-email": "Invalid email address",
    "too-many-requests": "Too many failed attempts. Please try again later",
    "popup-closed-by-user": "Google sign-in was cancelled",
    "popup-blocked": "Google sign-in popup was blocked. Please allow popups and try again",
    "cancelled-popup-request": "Google sign-in was cancelled",
    "account-exists-with-different-credential": (
        "An account already exists with the same email address but different sign-in credentials"
    ),
}

DEFAULT_AUTH_MESSAGE = "An error occurred. Please try again"


def describe_auth_error(code: str) -> str:
    return AUTH_ERROR_MESSAGES.get(code.removeprefix("auth/"), DEFAULT_AUTH_MESSAGE)


class AuthError(ExternalServiceError):
    def __init__(self, code: str):
        self.code = code.removeprefix("auth/")
        super().__init__(describe_auth_error(self.code))


@dataclass(frozen=True)
class User:
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    is_anonymous: bool = False


AuthListener = Callable[[Optional[User]], None]


class AuthProvider(Protocol):
    def sign_up(self, email: str, password: str) -> User: ...

    def sign_in(self, email: str, password: str) -> User: ...

    def sign_in_with_google(self) -> User: ...

    def guest_sign_in(self) -> User: ...

    def reset_password(self, email: str) -> None: ...

    def log_out(self) -> None: ...

    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]: ...


class GuestAuthProvider:
    """Anonymous, in-process sessions only; every other method fails with ``operation-not-allowed``."""

    def __init__(self):
        self.current_user: Optional[User] = None
        self._listeners: List[AuthListener] = []

    def _set_user(self, user: Optional[User]) -> None:
        self.current_user = user
        for listener in list(self._listeners):
            listener(user)

    def guest_sign_in(self) -> User:
        user = User(uid=f"guest-{new_id()}", display_name="Guest", is_anonymous=True)
        logger.info("guest session %s started", user.uid)
        self._set_user(user)
        return user

    def sign_up(self, email: str, password: str) -> User:
        raise AuthError("operation-not-allowed")

    def sign_in(self, email: str, password: str) -> User:
        raise AuthError("operation-not-allowed")

    def sign_in_with_google(self) -> User:
        raise AuthError("operation-not-allowed")

    def reset_password(self, email: str) -> None:
        raise AuthError("operation-not-allowed")

    def log_out(self) -> None:
        self._set_user(None)

    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]:
        self._listeners.append(callback)
        callback(self.current_user)
        return lambda: self._listeners.remove(callback) if callback in self._listeners else None
