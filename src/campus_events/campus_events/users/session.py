from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .model import CurrentUser

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[CurrentUser]], None]


class Session:
    """Who is signed in for one client.

    Passed explicitly to the data service; listeners are told about every
    sign-in / sign-out with the new user (``None`` after sign-out).
    """

    def __init__(self, user: Optional[CurrentUser] = None):
        self._user = user
        self._listeners: list[SessionListener] = []
        self._lock = threading.Lock()

    @property
    def current_user(self) -> Optional[CurrentUser]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def sign_in(self, user: CurrentUser) -> None:
        self._user = user
        self._notify()

    def sign_out(self) -> None:
        if self._user is None:
            return
        self._user = None
        self._notify()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(self._user)
            except Exception:
                logger.exception("Session listener failed")
