"""
Capture job state machine shared by every sink type.

A service joins the call, launches the encoder against a sink, watches the
encoder's health and relaunches it a bounded number of times. Stopping tears
everything down in a fixed order: health checks, encoder, call, finalize.
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..capture.executor import ProcessExecutor
from ..capture.params import CaptureParams
from ..capture.sink import Sink
from ..state.models import (
    CallParams,
    CaptureState,
    HealthCheckSettings,
    ServiceStatus,
)
from ..utils.logger import get_logger
from ..utils.process_monitor import ProcessMonitor
from ..utils.scheduler import Scheduler
from .call_session import CallSession
from .status import StatusPublisher


logger = get_logger(__name__)


class _EncoderHealth:
    """Presents encoder health as liveness for a ProcessMonitor."""
    
    def __init__(self, executor: ProcessExecutor):
        self.executor = executor
    
    def is_alive(self) -> bool:
        return self.executor.is_healthy()
    
    def get_exit_code(self) -> Optional[int]:
        return self.executor.get_exit_code()


class CaptureService(StatusPublisher, ABC):
    """
    One capture job. Single use: once stopped, build a new service.
    
    Subclasses provide _create_sink() and may hook _before_leave()
    (encoder stopped, still in the call) and _finalize() (after leaving).
    
    Terminal statuses (FINISHED, ERROR) are published at most once.
    """
    
    def __init__(
        self,
        call_params: CallParams,
        call_session: CallSession,
        capture_params: Optional[CaptureParams] = None,
        executor: Optional[ProcessExecutor] = None,
        scheduler: Optional[Scheduler] = None,
        health_settings: Optional[HealthCheckSettings] = None
    ):
        """
        Initialize capture service.
        
        Args:
            call_params: Call to join
            call_session: Browser session used to join the call
            capture_params: Encoder parameters
            executor: Encoder process owner
            scheduler: Scheduler for the health checks
            health_settings: Health check timing and restart budget
        """
        super().__init__()
        self.call_params = call_params
        self.call_session = call_session
        self.capture_params = capture_params or CaptureParams()
        self.executor = executor or ProcessExecutor()
        self.scheduler = scheduler or Scheduler()
        self.health_settings = health_settings or HealthCheckSettings()
        
        self._monitor = ProcessMonitor(
            _EncoderHealth(self.executor),
            self._on_encoder_unhealthy,
            scheduler=self.scheduler,
            initial_delay=self.health_settings.initial_delay,
            period=self.health_settings.check_interval,
            name=f"{type(self).__name__}-health"
        )
        
        self._sink: Optional[Sink] = None
        self._state = CaptureState.IDLE
        self._restart_count = 0
        self._final_status: Optional[ServiceStatus] = None
        self._lock = threading.RLock()
        
        # Bubble up the call session's status
        self.call_session.add_status_handler(self._on_call_status)
    
    @property
    def state(self) -> CaptureState:
        return self._state
    
    @property
    def sink(self) -> Optional[Sink]:
        return self._sink
    
    @property
    def restart_count(self) -> int:
        return self._restart_count
    
    @property
    def final_status(self) -> Optional[ServiceStatus]:
        return self._final_status
    
    @property
    def is_encoder_running(self) -> bool:
        return self.executor.is_alive()
    
    @abstractmethod
    def _create_sink(self) -> Sink:
        """Build the destination for the next launch."""
    
    def _before_leave(self) -> None:
        pass
    
    def _finalize(self) -> None:
        pass
    
    def start(self) -> bool:
        """
        Join the call and start capturing.
        
        Returns:
            True if the encoder was launched; False if the call could not
            be joined or the encoder could not start (the service is
            stopped and ERROR published in both cases)
        """
        with self._lock:
            if self._state is not CaptureState.IDLE:
                logger.error(f"Cannot start a service in state {self._state.value}")
                return False
            self._state = CaptureState.JOINING
        
        call_name = self.call_params.call_name
        logger.info(f"Joining call {call_name}")
        
        try:
            joined = self.call_session.join_call(call_name)
        except Exception as e:
            logger.error(f"Error while joining call {call_name}: {e}")
            joined = False
        
        if not joined:
            logger.error(f"Failed to join call {call_name}")
            self._fail()
            return False
        
        logger.info(f"Joined call {call_name}")
        
        with self._lock:
            if self._state is not CaptureState.JOINING:
                logger.info("Service was stopped while joining the call")
                return False
            
            self._run_step(
                "watch for an empty call",
                lambda: self.call_session.start_empty_call_detection(self.scheduler)
            )
            
            try:
                self._launch()
            except Exception as e:
                logger.error(f"Failed to start capture: {e}")
                self._fail()
                return False
            
            self._state = CaptureState.CAPTURING
            self._monitor.start_monitoring()
        
        return True
    
    def _launch(self) -> None:
        # A fresh sink per launch so a relaunch never reuses an output
        sink = self._create_sink()
        logger.info(f"Launching capture to {sink.describe()}")
        self.executor.launch(self.capture_params, sink)
        self._sink = sink
    
    def _on_encoder_unhealthy(self, exit_code: Optional[int]) -> None:
        with self._lock:
            if self._state is not CaptureState.CAPTURING:
                logger.debug(f"Ignoring health failure in state {self._state.value}")
                return
            
            if exit_code is not None:
                logger.error(f"Capturer process is no longer healthy. It exited with code {exit_code}")
            else:
                logger.error("Capturer process is no longer healthy but it is still running, stopping it now")
                self._run_step("stop the capturer", self.executor.stop)
            
            max_restarts = self.health_settings.max_restarts
            if self._restart_count >= max_restarts:
                logger.error(f"Giving up on restarting the capturer after {self._restart_count} restart(s)")
                self._fail()
                return
            
            self._restart_count += 1
            self._state = CaptureState.RESTARTING
            logger.info(f"Restarting capturer (attempt {self._restart_count}/{max_restarts})")
            
            try:
                self._launch()
            except Exception as e:
                logger.error(f"Failed to restart capturer: {e}")
                self._fail()
                return
            
            self._state = CaptureState.CAPTURING
            self._monitor.start_monitoring()
    
    def _on_call_status(self, status: ServiceStatus) -> None:
        if not status.is_terminal:
            self.publish_status(status)
            return
        
        logger.info(f"Call session reported {status.value}, stopping the service")
        self._publish_terminal(status)
        self.stop()
    
    def _fail(self) -> None:
        self._publish_terminal(ServiceStatus.ERROR)
        self.stop()
    
    def _publish_terminal(self, status: ServiceStatus) -> None:
        with self._lock:
            if self._final_status is not None:
                return
            self._final_status = status
        self.publish_status(status)
    
    def _run_step(self, description: str, step: Callable[[], None]) -> None:
        try:
            step()
        except Exception as e:
            logger.error(f"Error while trying to {description}: {e}")
    
    def stop(self) -> None:
        """
        Tear the job down. Safe to call from any state, any number of times.
        
        Health checks are cancelled before the encoder is stopped so that
        no relaunch can fire during shutdown.
        """
        with self._lock:
            if self._state in (CaptureState.STOPPING, CaptureState.STOPPED):
                logger.debug("Service is already stopping")
                return
            
            if self._state is CaptureState.IDLE:
                self._state = CaptureState.STOPPED
                return
            
            self._state = CaptureState.STOPPING
            self._monitor.stop_monitoring()
            
            logger.info("Stopping capturer")
            self._run_step("stop the capturer", self.executor.stop)
            # Nothing was captured if the encoder never launched
            captured = self._sink is not None
            if captured:
                self._run_step("collect call data", self._before_leave)
            
            logger.info("Leaving the call")
            self._run_step("leave the call", self.call_session.leave_call_and_quit)
            
            if captured:
                logger.info("Finalizing the capture")
                self._run_step("finalize the capture", self._finalize)
            
            self._state = CaptureState.STOPPED
        
        self._publish_terminal(ServiceStatus.FINISHED)
        logger.info("Service stopped")
