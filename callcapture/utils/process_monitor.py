"""
Watchdog for a single monitored process.
"""

import threading
from typing import Callable, Optional

from .logger import get_logger
from .scheduler import Scheduler, ScheduledTask


logger = get_logger(__name__)


class ProcessMonitor:
    """
    Periodically checks that a process is alive.
    
    The subject is anything with is_alive() and get_exit_code(). The first
    time the subject is found dead the monitor disarms itself and calls
    on_process_dead exactly once with the exit code, which is None if the
    process never started or is still running but considered dead.
    
    The callback runs without the monitor's lock held, so it may call
    start_monitoring() again to watch a relaunched process.
    """
    
    def __init__(
        self,
        subject,
        on_process_dead: Callable[[Optional[int]], None],
        scheduler: Optional[Scheduler] = None,
        initial_delay: float = 0,
        period: float = 60,
        name: str = 'process-monitor'
    ):
        self.subject = subject
        self.on_process_dead = on_process_dead
        self.scheduler = scheduler or Scheduler()
        self.initial_delay = initial_delay
        self.period = period
        self.name = name
        
        self._running = False
        self._task: Optional[ScheduledTask] = None
        self._lock = threading.Lock()
    
    @property
    def is_running(self) -> bool:
        return self._running
    
    def start_monitoring(self) -> None:
        """Arm the check timer. No-op if already running."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._task = self.scheduler.schedule_at_fixed_rate(
                self.tick,
                self.initial_delay,
                self.period,
                name=self.name
            )
    
    def stop_monitoring(self) -> None:
        """Disarm the check timer. Safe to call repeatedly or before start."""
        with self._lock:
            self._running = False
            self._disarm()
    
    def _disarm(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
    
    def tick(self) -> None:
        """Check the subject once; scheduled by start_monitoring()."""
        with self._lock:
            if not self._running:
                return
            if self.subject.is_alive():
                return
            self._running = False
            self._disarm()
        
        exit_code = self.subject.get_exit_code()
        logger.debug(f"{self.name}: process found dead (exit code: {exit_code})")
        self.on_process_dead(exit_code)
