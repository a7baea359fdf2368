"""
Interface to the browser session that sits in the call.

The session joins the call, reports who took part and publishes FINISHED
when the call empties. Concrete browser automation lives outside this
package and is plugged in through a factory.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..state.models import CallParams, ServiceStatus
from ..utils.logger import get_logger
from ..utils.scheduler import Scheduler, ScheduledTask
from .status import StatusPublisher


logger = get_logger(__name__)


class CallSession(StatusPublisher, ABC):
    """
    A participant in a web call, driven by some browser automation.
    
    Implementations provide join_call(), get_participants() and
    _leave_call(). Once in the call, start_empty_call_detection() makes
    the session publish FINISHED when nobody else is left; leaving the
    call cancels the detection.
    """
    
    def __init__(self):
        super().__init__()
        self._empty_call_detector: Optional['EmptyCallDetector'] = None
    
    @abstractmethod
    def join_call(self, call_name: str) -> bool:
        """Join the call. Returns False if the call could not be joined."""
    
    @abstractmethod
    def get_participants(self) -> list[str]:
        """Everyone seen in the call while the session was in it."""
    
    @abstractmethod
    def _leave_call(self) -> None:
        """Leave the call and release the browser."""
    
    def get_participant_count(self) -> int:
        """
        Number of participants in the call, this session included.
        
        Implementations that track past participants in get_participants()
        should override this with the live count.
        """
        return len(self.get_participants())
    
    def start_empty_call_detection(
        self,
        scheduler: Optional[Scheduler] = None,
        period: float = 15,
        max_empty_checks: int = 2
    ) -> None:
        """Publish FINISHED once the session is left alone in the call."""
        if self._empty_call_detector is not None:
            return
        self._empty_call_detector = EmptyCallDetector(
            self.get_participant_count,
            self._on_call_empty,
            scheduler=scheduler,
            period=period,
            max_empty_checks=max_empty_checks
        )
        self._empty_call_detector.start()
    
    def stop_empty_call_detection(self) -> None:
        detector, self._empty_call_detector = self._empty_call_detector, None
        if detector is not None:
            detector.cancel()
    
    def _on_call_empty(self) -> None:
        self.publish_status(ServiceStatus.FINISHED)
    
    def leave_call_and_quit(self) -> None:
        """Stop watching the call, then leave it and release the browser."""
        self.stop_empty_call_detection()
        self._leave_call()


CallSessionFactory = Callable[[CallParams], CallSession]


class EmptyCallDetector:
    """
    Detects that the capture bot has been left alone in a call.
    
    The participant count includes the bot itself, so a count of one or
    less is empty. After max_empty_checks consecutive empty checks the
    detector cancels itself and calls on_empty once.
    """
    
    def __init__(
        self,
        participant_count: Callable[[], int],
        on_empty: Callable[[], None],
        scheduler: Optional[Scheduler] = None,
        period: float = 15,
        max_empty_checks: int = 2
    ):
        self.participant_count = participant_count
        self.on_empty = on_empty
        self.scheduler = scheduler or Scheduler()
        self.period = period
        self.max_empty_checks = max_empty_checks
        
        self.empty_checks = 0
        self._task: Optional[ScheduledTask] = None
    
    def start(self) -> None:
        if self._task is not None:
            return
        self._task = self.scheduler.schedule_at_fixed_rate(
            self._check,
            0,
            self.period,
            name='empty-call-detector'
        )
    
    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
    
    def _check(self) -> None:
        if self._task is not None and self._task.cancelled:
            return
        
        try:
            count = self.participant_count()
        except Exception as e:
            logger.error(f"Error while checking for empty call state: {e}")
            self.empty_checks = 0
            return
        
        if count > 1:
            self.empty_checks = 0
        else:
            self.empty_checks += 1
        
        if self.empty_checks >= self.max_empty_checks:
            logger.info(
                f"Alone in the call for {self.empty_checks * self.period:.0f} seconds, "
                f"marking as finished"
            )
            self.cancel()
            self.on_empty()
