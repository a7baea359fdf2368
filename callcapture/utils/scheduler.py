"""
Periodic task scheduling on named background threads.

Components that poll on an interval take a scheduler instead of
creating threads themselves, so tests can drive ticks by hand.
"""

import threading
import time
from threading import Thread, Event
from typing import Callable, Optional

from .logger import get_logger


logger = get_logger(__name__)


class ScheduledTask:
    """
    A function run at a fixed rate on its own daemon thread.
    
    Cancellation is cooperative: a run that is already in progress
    finishes, and no further run starts afterwards.
    """
    
    def __init__(
        self,
        func: Callable[[], None],
        initial_delay: float,
        period: float,
        name: str
    ):
        self.func = func
        self.initial_delay = initial_delay
        self.period = period
        self.name = name
        
        self._cancelled = Event()
        self._thread: Optional[Thread] = None
    
    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()
    
    def start(self) -> None:
        self._thread = Thread(target=self._run, daemon=True, name=self.name)
        self._thread.start()
    
    def cancel(self) -> None:
        self._cancelled.set()
    
    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the task thread to exit (no-op from the task's own thread)."""
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
    
    def _run(self) -> None:
        next_run = time.monotonic() + self.initial_delay
        
        while not self._cancelled.wait(max(0.0, next_run - time.monotonic())):
            try:
                self.func()
            except Exception as e:
                logger.error(f"Scheduled task {self.name} failed: {e}")
            
            next_run += self.period


class Scheduler:
    """Creates and tracks fixed-rate tasks."""
    
    def __init__(self):
        self._tasks: list[ScheduledTask] = []
        self._lock = threading.Lock()
    
    def schedule_at_fixed_rate(
        self,
        func: Callable[[], None],
        initial_delay: float,
        period: float,
        name: str = 'scheduled-task'
    ) -> ScheduledTask:
        """
        Run func every period seconds, the first time after initial_delay.
        
        Args:
            func: Callable to run on each tick
            initial_delay: Seconds before the first run
            period: Seconds between the start of consecutive runs
            name: Thread name for the task
            
        Returns:
            The started ScheduledTask, which the caller cancels
        """
        task = ScheduledTask(func, initial_delay, period, name)
        
        with self._lock:
            self._tasks = [t for t in self._tasks if not t.cancelled]
            self._tasks.append(task)
        
        task.start()
        return task
    
    def shutdown(self) -> None:
        """Cancel every outstanding task."""
        with self._lock:
            tasks, self._tasks = self._tasks, []
        
        for task in tasks:
            task.cancel()
