"""
Synchronous status fan-out.
"""

import threading
from typing import Callable

from ..state.models import ServiceStatus
from ..utils.logger import get_logger


logger = get_logger(__name__)

StatusHandler = Callable[[ServiceStatus], None]


class StatusPublisher:
    """
    Delivers statuses to registered handlers.
    
    Handlers are called in registration order on the publishing thread,
    before publish_status returns. A handler that raises is logged and
    skipped; the remaining handlers still run.
    """
    
    def __init__(self):
        self._status_handlers: list[StatusHandler] = []
        self._handlers_lock = threading.Lock()
    
    def add_status_handler(self, handler: StatusHandler) -> None:
        with self._handlers_lock:
            self._status_handlers = self._status_handlers + [handler]
    
    def publish_status(self, status: ServiceStatus) -> None:
        with self._handlers_lock:
            handlers = self._status_handlers
        
        for handler in handlers:
            try:
                handler(status)
            except Exception as e:
                logger.error(f"Status handler failed for {status.value}: {e}")
