"""
Custom exceptions for the call capture service.
"""

from typing import Optional


class CallCaptureError(Exception):
    """Base exception for all call capture errors."""
    pass


class ConfigurationError(CallCaptureError):
    """Raised when configuration is invalid or missing."""
    pass


class CaptureError(CallCaptureError):
    """Raised when encoder operations fail."""
    pass


class ProcessLaunchError(CaptureError):
    """Raised when the encoder process cannot be started."""

    def __init__(self, message: str, command: Optional[list[str]] = None):
        super().__init__(message)
        self.command = command or []


class RequestValidationError(CallCaptureError):
    """Raised when a start request from the control API is invalid."""
    pass
