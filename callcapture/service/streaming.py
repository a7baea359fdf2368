"""
Capture a call and stream it to an RTMP endpoint.
"""

from dataclasses import dataclass
from typing import Optional

from ..capture.sink import StreamSink
from ..state.models import CallParams
from .base import CaptureService
from .call_session import CallSession


YOUTUBE_URL = 'rtmp://a.rtmp.youtube.com/live2'
STREAMING_MAX_BITRATE = 2976


@dataclass
class StreamingOptions:
    """Where a streaming job pushes its output."""
    
    call_params: CallParams
    stream_key: str = ''
    # Full URL; takes precedence over rtmp_url + stream_key
    stream_url: Optional[str] = None
    rtmp_url: str = YOUTUBE_URL
    max_bitrate: int = STREAMING_MAX_BITRATE
    
    @property
    def url(self) -> str:
        if self.stream_url:
            return self.stream_url
        return f"{self.rtmp_url.rstrip('/')}/{self.stream_key}"


class StreamingService(CaptureService):
    """Streams a call live."""
    
    def __init__(self, streaming_options: StreamingOptions, call_session: CallSession, **kwargs):
        super().__init__(streaming_options.call_params, call_session, **kwargs)
        self.streaming_options = streaming_options
    
    def _create_sink(self) -> StreamSink:
        return StreamSink(
            url=self.streaming_options.url,
            max_bitrate=self.streaming_options.max_bitrate,
            buf_size=2 * self.streaming_options.max_bitrate
        )
