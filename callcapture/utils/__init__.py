"""
Utilities module for the call capture service.
"""

from .config import load_config, get_config, Config
from .logger import setup_logging, get_logger, get_process_output_logger
from .exceptions import (
    CallCaptureError,
    ConfigurationError,
    CaptureError,
    ProcessLaunchError,
    RequestValidationError,
)
from .scheduler import Scheduler, ScheduledTask
from .process_monitor import ProcessMonitor

__all__ = [
    'load_config',
    'get_config',
    'Config',
    'setup_logging',
    'get_logger',
    'get_process_output_logger',
    'CallCaptureError',
    'ConfigurationError',
    'CaptureError',
    'ProcessLaunchError',
    'RequestValidationError',
    'Scheduler',
    'ScheduledTask',
    'ProcessMonitor',
]
