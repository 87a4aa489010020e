import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from core.client import ApiError

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"


AuthListener = Callable[[AuthEvent, Optional[Dict[str, Any]]], None]


class AuthSession:
    """Client-side sign-in state.

    The application token is stored on the shared ``ApiClient`` so every
    later call is authenticated. ``is_admin`` only reflects the cached
    profile; the server checks the role again on each admin call.
    """

    def __init__(self, client):
        self.client = client
        self.user: Optional[Dict[str, Any]] = None
        self._listeners: List[AuthListener] = []

    @property
    def token(self) -> Optional[str]:
        return self.client.token

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "admin"

    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return unsubscribe

    def _emit(self, event: AuthEvent) -> None:
        logger.info("auth state changed: %s", event.value)
        for callback in list(self._listeners):
            callback(event, self.user)

    def _establish(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.client.token = data["token"]
        self.user = data["user"]
        self._emit(AuthEvent.SIGNED_IN)
        return self.user

    def sign_in(self, id_token: str) -> Dict[str, Any]:
        """Exchange an identity-provider token for an application token.

        Raises ``ApiError`` when the server rejects the token.
        """
        return self._establish(self.client.sign_in(id_token))

    def sign_up(self, id_token: str, full_name: str) -> Dict[str, Any]:
        # first sign-in creates the profile; the name is only used then
        return self._establish(self.client.sign_in(id_token, full_name=full_name))

    def sign_out(self) -> None:
        self.client.token = None
        self.user = None
        self._emit(AuthEvent.SIGNED_OUT)

    def restore(self, token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Re-read the profile for a stored token; drops the token if it is no longer valid."""
        if token:
            self.client.token = token
        if not self.client.token:
            return None
        try:
            self.user = self.client.current_user()
        except ApiError as e:
            logger.warning("stored session is no longer valid: %s", e)
            self.client.token = None
            self.user = None
            return None
        self._emit(AuthEvent.USER_UPDATED)
        return self.user
