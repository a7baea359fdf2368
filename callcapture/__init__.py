"""
Call Capture

Joins web calls, captures their audio and video with an external encoder
and records them to files or streams them live, restarting the encoder
when it stops making progress.
"""

__version__ = "1.0.0"
__author__ = "Call Capture Team"

from .utils.config import load_config, get_config, Config
from .utils.logger import setup_logging, get_logger
from .manager import CaptureManager
from .main import CaptureApp, main

__all__ = [
    'load_config',
    'get_config',
    'Config',
    'setup_logging',
    'get_logger',
    'CaptureManager',
    'CaptureApp',
    'main',
]
