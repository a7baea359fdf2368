"""
ffmpeg command construction for screen and audio capture.
"""

import sys
from typing import Optional

from ..utils.exceptions import CaptureError
from .params import CaptureParams
from .sink import Sink


def _linux_input_args(params: CaptureParams) -> list[str]:
    return [
        '-f', 'x11grab',
        '-draw_mouse', '0',
        '-r', str(params.framerate),
        '-s', params.resolution,
        '-thread_queue_size', str(params.queue_size),
        '-i', f'{params.display}.0+0,0',
        '-f', 'alsa',
        '-thread_queue_size', str(params.queue_size),
        '-i', params.audio_input_device,
    ]


def _mac_input_args(params: CaptureParams) -> list[str]:
    return [
        '-thread_queue_size', str(params.queue_size),
        '-f', 'avfoundation',
        '-framerate', str(params.framerate),
        '-video_size', params.resolution,
        '-i', f'{params.video_input_device}:{params.audio_input_device}',
        '-vsync', '2',
    ]


def build_ffmpeg_command(
    params: CaptureParams,
    sink: Sink,
    platform: Optional[str] = None
) -> list[str]:
    """
    Build the ffmpeg argument list for capturing into a sink.
    
    Args:
        params: Encoder parameters
        sink: Where the encoded media goes
        platform: sys.platform value to build for (defaults to the current one)
        
    Returns:
        Argument list suitable for subprocess
        
    Raises:
        CaptureError: If the platform has no capture devices we know of
    """
    platform = platform or sys.platform
    
    if platform.startswith('linux'):
        input_args = _linux_input_args(params)
    elif platform == 'darwin':
        input_args = _mac_input_args(params)
    else:
        raise CaptureError(f"Unsupported capture platform: {platform}")
    
    cmd = ['ffmpeg', '-y', '-v', 'info']
    cmd.extend(input_args)
    
    # Audio options
    cmd.extend(['-acodec', 'aac', '-strict', '-2', '-ar', '44100'])
    
    # Video options
    cmd.extend([
        '-c:v', 'libx264',
        '-preset', params.video_encode_preset,
        *sink.options,
        '-pix_fmt', 'yuv420p',
        '-r', str(params.framerate),
        '-crf', str(params.h264_constant_rate_factor),
        '-g', str(params.gop_size),
        '-tune', 'zerolatency',
    ])
    
    cmd.extend(['-f', sink.format, sink.path])
    
    return cmd
