"""
Data models for the call capture service.

Defines service statuses, call parameters and health reporting.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ServiceStatus(Enum):
    """Status a capture service publishes to its subscribers."""
    
    RUNNING = "running"     # Initial, implied by a successful start
    FINISHED = "finished"   # The job ended normally
    ERROR = "error"         # The job failed and was torn down
    
    @property
    def is_terminal(self) -> bool:
        return self is not ServiceStatus.RUNNING


class CaptureState(Enum):
    """Lifecycle states of a single capture job."""
    
    IDLE = "idle"
    JOINING = "joining"
    CAPTURING = "capturing"
    RESTARTING = "restarting"
    STOPPING = "stopping"
    STOPPED = "stopped"


class StartServiceResult(Enum):
    """Outcome of a request to start a capture job."""
    
    SUCCESS = "success"
    BUSY = "busy"
    ERROR = "error"


@dataclass
class CallUrlInfo:
    """Where the call lives."""
    
    base_url: str = ""
    call_name: str = ""
    
    @property
    def call_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.call_name}"


@dataclass
class CallLoginParams:
    """Credentials used by the call session to join as a hidden participant."""
    
    domain: str = ""
    username: str = ""
    password: str = ""


@dataclass
class CallParams:
    """Everything needed to join a call."""
    
    call_url_info: CallUrlInfo = field(default_factory=CallUrlInfo)
    call_login_params: CallLoginParams = field(default_factory=CallLoginParams)
    
    @property
    def call_name(self) -> str:
        return self.call_url_info.call_name
    
    @classmethod
    def from_dict(cls, data: dict) -> 'CallParams':
        """Create CallParams from the camelCase JSON used by the control API."""
        url_info = data.get('callUrlInfo') or {}
        login = data.get('callLoginParams') or {}
        return cls(
            call_url_info=CallUrlInfo(
                base_url=url_info.get('baseUrl', ''),
                call_name=url_info.get('callName', ''),
            ),
            call_login_params=CallLoginParams(
                domain=login.get('domain', ''),
                username=login.get('username', ''),
                password=login.get('password', ''),
            ),
        )


@dataclass
class SipClientParams:
    """Parameters for bridging a call to a SIP endpoint."""
    
    sip_address: str = ""
    display_name: str = ""


@dataclass
class HealthCheckSettings:
    """How a capture service watches its encoder."""
    
    # Warm-up before the first check; a slow encoder can still fail it
    initial_delay: float = 30
    check_interval: float = 10
    max_restarts: int = 1
    
    @classmethod
    def from_config(cls, health_config: dict) -> 'HealthCheckSettings':
        return cls(
            initial_delay=health_config.get('initial_delay', 30),
            check_interval=health_config.get('check_interval', 10),
            max_restarts=health_config.get('max_restarts', 1),
        )


@dataclass
class RecordingMetadata:
    """Metadata written next to a recording."""
    
    participants: list[str] = field(default_factory=list)
    
    def to_dict(self) -> dict:
        return {'participants': list(self.participants)}


@dataclass
class HealthStatus:
    """Health of this capture node."""
    
    busy: bool = False
    service_status: Optional[ServiceStatus] = None
    capture_state: Optional[CaptureState] = None
    encoder_running: bool = False
    encoder_restarts: int = 0
    
    def to_dict(self) -> dict:
        """Convert to dictionary for JSON response."""
        return {
            'busy': self.busy,
            'service_status': self.service_status.value if self.service_status else None,
            'capture_state': self.capture_state.value if self.capture_state else None,
            'encoder_running': self.encoder_running,
            'encoder_restarts': self.encoder_restarts,
            'healthy': self.is_healthy,
        }
    
    @property
    def is_healthy(self) -> bool:
        """A node is healthy unless its current job failed."""
        return self.service_status is not ServiceStatus.ERROR
