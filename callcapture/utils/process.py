"""
Helpers for signalling and reaping external processes.
"""

import os
import signal
import subprocess
from typing import Optional

from .logger import get_logger


logger = get_logger(__name__)


def process_id(proc) -> Optional[int]:
    """
    Get the native process id of a process handle.
    
    Returns:
        The pid, or None when it cannot be determined
    """
    pid = getattr(proc, 'pid', None)
    if isinstance(pid, int) and pid > 0:
        return pid
    return None


def _signal_process(proc, sig: int, fallback) -> None:
    """Signal the process group by pid, or use the handle's own method."""
    pid = process_id(proc)
    
    if pid is not None and os.name != 'nt':
        os.killpg(os.getpgid(pid), sig)
    else:
        fallback()


def stop_process(proc, name: str, timeout: float = 10) -> Optional[int]:
    """
    Stop a process gracefully, killing it if it does not exit in time.
    
    Sends SIGINT (ffmpeg finalizes its output on SIGINT), waits up to
    timeout seconds, then sends SIGKILL.
    
    Args:
        proc: subprocess.Popen-like handle
        name: Name used in log messages
        timeout: Seconds to wait for a voluntary exit
        
    Returns:
        The exit code of the process
    """
    if proc.poll() is not None:
        logger.info(f"{name} had already exited with {proc.returncode}")
        return proc.returncode
    
    logger.info(f"Sending SIGINT to {name} (PID: {process_id(proc)})")
    
    try:
        _signal_process(proc, signal.SIGINT, proc.terminate)
    except ProcessLookupError:
        pass
    
    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        # Killing ffmpeg this way will likely leave a corrupt output file
        logger.warning(f"{name} did not exit within {timeout}s, force killing")
        try:
            _signal_process(proc, getattr(signal, 'SIGKILL', signal.SIGTERM), proc.kill)
        except ProcessLookupError:
            pass
        proc.wait()
    
    logger.info(f"{name} exited with {proc.returncode}")
    return proc.returncode
