from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from ..users.model import CurrentUser
from ..users.session import Session
from .service import DataService

logger = logging.getLogger(__name__)

DataServiceFactory = Callable[[Session], DataService]


class DataServiceRegistry:
    """One ``Session`` + ``DataService`` per signed-in user (HTTP layer)."""

    def __init__(self, factory: DataServiceFactory):
        self._factory = factory
        self._services: dict[str, DataService] = {}
        self._lock = threading.Lock()

    def open(self, user: CurrentUser) -> DataService:
        with self._lock:
            service = self._services.get(user.id)
            if service is None:
                service = self._factory(Session(user))
                self._services[user.id] = service
                logger.info("Opened data service for %s", user.id)
            elif service.session.current_user != user:
                service.session.sign_in(user)
            return service

    def get(self, user_id: str) -> Optional[DataService]:
        with self._lock:
            return self._services.get(user_id)

    def close(self, user_id: str) -> None:
        with self._lock:
            service = self._services.pop(user_id, None)
        if service is None:
            return
        service.close()
        service.session.sign_out()
        logger.info("Closed data service for %s", user_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._services)
