"""
State and data models for the call capture service.
"""

from .models import (
    ServiceStatus,
    CaptureState,
    StartServiceResult,
    CallUrlInfo,
    CallLoginParams,
    CallParams,
    SipClientParams,
    HealthCheckSettings,
    RecordingMetadata,
    HealthStatus,
)
from .requests import (
    FileRecordingRequest,
    StreamingRequest,
    GatewayRequest,
    StartServiceRequest,
    parse_start_request,
)

__all__ = [
    'ServiceStatus',
    'CaptureState',
    'StartServiceResult',
    'CallUrlInfo',
    'CallLoginParams',
    'CallParams',
    'SipClientParams',
    'HealthCheckSettings',
    'RecordingMetadata',
    'HealthStatus',
    'FileRecordingRequest',
    'StreamingRequest',
    'GatewayRequest',
    'StartServiceRequest',
    'parse_start_request',
]
