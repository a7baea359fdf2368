"""
Encoder parameters for a capture job.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CaptureParams:
    """
    Settings used to build the encoder command line.
    
    streaming_buf_size and gop_size default to twice the bitrate and
    twice the framerate respectively.
    """
    
    resolution: str = '1280x720'
    framerate: int = 30
    video_encode_preset: str = 'veryfast'
    queue_size: int = 4096
    video_input_device: str = 'FaceTime HD Camera'
    audio_input_device: str = 'Built-in Microphone'
    streaming_max_bitrate: int = 2976
    streaming_buf_size: Optional[int] = None
    # CRF range is 0-51; 17-18 is visually lossless, 23 is the x264 default
    h264_constant_rate_factor: int = 25
    gop_size: Optional[int] = None
    display: str = ':0'
    
    def __post_init__(self):
        if self.streaming_buf_size is None:
            object.__setattr__(self, 'streaming_buf_size', self.streaming_max_bitrate * 2)
        if self.gop_size is None:
            object.__setattr__(self, 'gop_size', self.framerate * 2)
    
    @classmethod
    def from_config(cls, config) -> 'CaptureParams':
        """Build params from the capture section of a Config."""
        capture = config.get_capture_config()
        fields = {
            key: capture[key]
            for key in cls.__dataclass_fields__
            if key in capture
        }
        return cls(**fields)
