"""
Capture module for the call capture service.

Handles the encoder process, its output stream and capture destinations.
"""

from .params import CaptureParams
from .sink import Sink, FileSink, StreamSink
from .command import build_ffmpeg_command
from .output_parser import OutputParser
from .tee import StreamTee, TeeBranch, TailTracker
from .executor import ProcessExecutor

__all__ = [
    'CaptureParams',
    'Sink',
    'FileSink',
    'StreamSink',
    'build_ffmpeg_command',
    'OutputParser',
    'StreamTee',
    'TeeBranch',
    'TailTracker',
    'ProcessExecutor',
]
