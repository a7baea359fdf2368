"""
Capture destinations.

A sink tells the encoder where to write and in which container,
plus any sink-specific encoder options.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class FileSink:
    """A recording file inside a directory."""
    
    directory: Path
    base_name: str
    format: str = 'mp4'
    options: tuple = ('-profile:v', 'main', '-level', '3.1')
    
    @classmethod
    def create(cls, directory: Path, call_name: str) -> 'FileSink':
        """
        Create a sink with a fresh file name.
        
        The name combines the call name, a timestamp and a random token,
        so a relaunch never overwrites an earlier partial recording.
        """
        safe_name = re.sub(r'[^\w.-]+', '_', call_name) or 'recording'
        timestamp = datetime.now().strftime('%Y-%m-%d-%H-%M-%S')
        token = uuid.uuid4().hex[:8]
        return cls(Path(directory), f"{safe_name}_{timestamp}_{token}")
    
    @property
    def path(self) -> str:
        return str(Path(self.directory) / f"{self.base_name}.{self.format}")
    
    @property
    def identity(self) -> str:
        return self.path
    
    def describe(self) -> str:
        return self.path


@dataclass(frozen=True)
class StreamSink:
    """A live stream pushed to an RTMP endpoint."""
    
    url: str
    max_bitrate: int
    buf_size: Optional[int] = None
    format: str = 'flv'
    
    def __post_init__(self):
        if self.buf_size is None:
            object.__setattr__(self, 'buf_size', self.max_bitrate * 2)
    
    @property
    def path(self) -> str:
        return self.url
    
    @property
    def identity(self) -> str:
        return self.url
    
    @property
    def options(self) -> tuple:
        return (
            '-maxrate', f'{self.max_bitrate}k',
            '-bufsize', f'{self.buf_size}k',
        )
    
    @property
    def safe_url(self) -> str:
        """URL with the stream key masked for logging."""
        base, sep, key = self.url.rpartition('/')
        if not sep or not key or base.endswith(':/'):
            return self.url
        return f"{base}/****"
    
    def describe(self) -> str:
        return self.safe_url


Sink = Union[FileSink, StreamSink]
