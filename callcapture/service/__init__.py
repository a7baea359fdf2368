"""
Capture services: one state machine per capture job.
"""

from .status import StatusPublisher
from .call_session import CallSession, CallSessionFactory, EmptyCallDetector
from .base import CaptureService
from .file_recording import FileRecordingService, RecordingOptions
from .streaming import StreamingService, StreamingOptions

__all__ = [
    'StatusPublisher',
    'CallSession',
    'CallSessionFactory',
    'EmptyCallDetector',
    'CaptureService',
    'FileRecordingService',
    'RecordingOptions',
    'StreamingService',
    'StreamingOptions',
]
