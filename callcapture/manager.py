"""
Single-job manager for the call capture node.

Accepts start requests from the control API, runs at most one capture
job at a time and reports node health.
"""

import threading
from typing import Callable, Optional

from .capture.executor import ProcessExecutor
from .capture.params import CaptureParams
from .state.requests import (
    FileRecordingRequest,
    GatewayRequest,
    StartServiceRequest,
    StreamingRequest,
)
from .service.base import CaptureService
from .service.call_session import CallSessionFactory
from .service.file_recording import FileRecordingService, RecordingOptions
from .service.streaming import (
    STREAMING_MAX_BITRATE,
    YOUTUBE_URL,
    StreamingOptions,
    StreamingService,
)
from .state.models import (
    HealthCheckSettings,
    HealthStatus,
    ServiceStatus,
    StartServiceResult,
)
from .utils.config import Config
from .utils.exceptions import RequestValidationError
from .utils.logger import get_logger, get_process_output_logger
from .utils.scheduler import Scheduler


logger = get_logger(__name__)


class CaptureManager:
    """
    Owns the currently running capture job, if any.
    
    The job slot is released when the job publishes a terminal status or
    is stopped through stop_service(). The manager never holds its own
    lock while calling into a service.
    """
    
    def __init__(
        self,
        config: Config,
        call_session_factory: CallSessionFactory,
        executor_factory: Optional[Callable[[], ProcessExecutor]] = None,
        scheduler: Optional[Scheduler] = None
    ):
        """
        Initialize capture manager.
        
        Args:
            config: Service configuration
            call_session_factory: Creates the browser session for a call
            executor_factory: Creates an encoder executor per job
            scheduler: Scheduler shared by the jobs' health checks
        """
        self.config = config
        self.call_session_factory = call_session_factory
        self.executor_factory = executor_factory or self._create_executor
        self.scheduler = scheduler or Scheduler()
        
        self.capture_params = CaptureParams.from_config(config)
        self.health_settings = HealthCheckSettings.from_config(config.get_health_config())
        
        self._current: Optional[CaptureService] = None
        self._lock = threading.Lock()
    
    @property
    def current_service(self) -> Optional[CaptureService]:
        return self._current
    
    @property
    def busy(self) -> bool:
        return self._current is not None
    
    def _create_executor(self) -> ProcessExecutor:
        logging_config = self.config.get_logging_config()
        output_logger = get_process_output_logger(
            logging_config.get('process_output_file'),
            max_size_mb=logging_config.get('max_size_mb', 50),
            backup_count=logging_config.get('backup_count', 5)
        )
        return ProcessExecutor(
            output_logger=output_logger,
            stop_timeout=self.config.get('health.stop_timeout', 10)
        )
    
    def _service_kwargs(self) -> dict:
        return {
            'capture_params': self.capture_params,
            'executor': self.executor_factory(),
            'scheduler': self.scheduler,
            'health_settings': self.health_settings,
        }
    
    def _create_service(self, request: StartServiceRequest) -> Optional[CaptureService]:
        if isinstance(request, GatewayRequest):
            logger.error(
                f"SIP gateway to {request.sip_client_params.sip_address} requested, "
                f"but this node has no SIP gateway service"
            )
            return None
        
        if isinstance(request, FileRecordingRequest):
            options = RecordingOptions(
                recording_directory=self.config.get_recordings_dir(),
                call_params=request.call_params,
                finalize_script_path=self.config.get_finalize_script()
            )
            return FileRecordingService(
                options,
                self.call_session_factory(request.call_params),
                **self._service_kwargs()
            )
        
        if isinstance(request, StreamingRequest):
            streaming = self.config.get_streaming_config()
            options = StreamingOptions(
                call_params=request.call_params,
                stream_key=request.stream_key,
                stream_url=request.stream_url,
                rtmp_url=streaming.get('rtmp_url', YOUTUBE_URL),
                max_bitrate=streaming.get('max_bitrate', STREAMING_MAX_BITRATE)
            )
            return StreamingService(
                options,
                self.call_session_factory(request.call_params),
                **self._service_kwargs()
            )
        
        raise RequestValidationError(f"Unsupported request type: {type(request).__name__}")
    
    def start_service(self, request: StartServiceRequest) -> StartServiceResult:
        """
        Start a capture job for the request.
        
        Blocks while the call is joined and the encoder launched.
        
        Returns:
            SUCCESS, BUSY if a job is already running, or ERROR
        """
        with self._lock:
            if self._current is not None:
                logger.info("A capture job is already running, rejecting start request")
                return StartServiceResult.BUSY
            
            try:
                service = self._create_service(request)
            except Exception as e:
                logger.error(f"Failed to create capture service: {e}")
                return StartServiceResult.ERROR
            
            if service is None:
                return StartServiceResult.ERROR
            
            self._current = service
        
        service.add_status_handler(
            lambda status: self._on_service_status(service, status)
        )
        
        logger.info(f"Starting {type(service).__name__} for call {request.call_params.call_name}")
        
        try:
            started = service.start()
        except Exception as e:
            logger.error(f"Capture service failed to start: {e}")
            started = False
        
        if not started:
            self._release(service)
            return StartServiceResult.ERROR
        
        return StartServiceResult.SUCCESS
    
    def _on_service_status(self, service: CaptureService, status: ServiceStatus) -> None:
        if status.is_terminal:
            logger.info(f"Capture job ended with status {status.value}")
            self._release(service)
    
    def _release(self, service: CaptureService) -> None:
        with self._lock:
            if self._current is service:
                self._current = None
    
    def stop_service(self) -> None:
        """Stop the current capture job, if any."""
        with self._lock:
            service = self._current
        
        if service is None:
            logger.info("No capture job running")
            return
        
        logger.info("Stopping the current capture job")
        service.stop()
        self._release(service)
    
    def health_check(self) -> HealthStatus:
        """Get current node health."""
        service = self._current
        
        if service is None:
            return HealthStatus()
        
        return HealthStatus(
            busy=True,
            service_status=service.final_status or ServiceStatus.RUNNING,
            capture_state=service.state,
            encoder_running=service.is_encoder_running,
            encoder_restarts=service.restart_count,
        )
    
    def shutdown(self) -> None:
        """Stop the current job and all scheduled tasks."""
        self.stop_service()
        self.scheduler.shutdown()
