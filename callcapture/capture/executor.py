"""
Owner of the external encoder process.

Launches ffmpeg for a sink, tees its output to a log and a health tail,
and stops it gracefully (then forcibly) on request.
"""

import logging
import os
import subprocess
import threading
from threading import Thread
from typing import Callable, Optional

from ..utils.exceptions import ProcessLaunchError
from ..utils.logger import get_logger, get_process_output_logger
from ..utils.process import process_id, stop_process
from .command import build_ffmpeg_command
from .output_parser import OutputParser
from .params import CaptureParams
from .sink import Sink
from .tee import StreamTee, TailTracker, TeeBranch


logger = get_logger(__name__)


class ProcessExecutor:
    """
    Runs one encoder process at a time.
    
    Launching while a process is still alive stops that process first,
    so there is never more than one live handle per executor.
    """
    
    def __init__(
        self,
        command_builder: Callable[[CaptureParams, Sink], list[str]] = build_ffmpeg_command,
        output_logger: Optional[logging.Logger] = None,
        stop_timeout: float = 10,
        name: str = 'ffmpeg'
    ):
        """
        Initialize executor.
        
        Args:
            command_builder: Builds the argument list for a launch
            output_logger: Receives every line of encoder output
            stop_timeout: Seconds to wait for a graceful exit before killing
            name: Process name used in logs and thread names
        """
        self.command_builder = command_builder
        self.output_logger = output_logger or get_process_output_logger()
        self.stop_timeout = stop_timeout
        self.name = name
        
        self._process: Optional[subprocess.Popen] = None
        self._tee: Optional[StreamTee] = None
        self._tail: Optional[TailTracker] = None
        self._log_branch: Optional[TeeBranch] = None
        self._log_thread: Optional[Thread] = None
        self._parser = OutputParser()
        self._lock = threading.RLock()
    
    @property
    def pid(self) -> Optional[int]:
        return process_id(self._process) if self._process else None
    
    @property
    def most_recent_output(self) -> str:
        return self._tail.most_recent_line if self._tail else ''
    
    def launch(self, params: CaptureParams, sink: Sink) -> None:
        """
        Start the encoder writing to sink.
        
        Raises:
            ProcessLaunchError: If the process cannot be started
        """
        with self._lock:
            if self.is_alive():
                logger.warning(f"{self.name} is already running, stopping it before relaunch")
                self._stop_locked()
            elif self._process is not None:
                self._detach_output()
            
            cmd = self.command_builder(params, sink)
            
            # Log command with the stream key masked
            safe_cmd = ' '.join(cmd).replace(sink.path, sink.describe())
            logger.info(f"Starting {self.name}: {safe_cmd}")
            
            try:
                self._process = subprocess.Popen(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    errors='replace',
                    # New process group so signals reach ffmpeg and nothing else
                    start_new_session=os.name != 'nt'
                )
            except (OSError, ValueError) as e:
                self._process = None
                raise ProcessLaunchError(f"Failed to start {self.name}: {e}", cmd) from e
            
            self._attach_output(self._process)
            logger.info(f"{self.name} started (PID: {self.pid})")
    
    def _attach_output(self, process: subprocess.Popen) -> None:
        # Both branches exist before the tee starts reading, so neither misses output
        self._tee = StreamTee(process.stdout, name=f"{self.name}-output-tee")
        self._tail = TailTracker(self._tee.add_branch(), name=f"{self.name}-output-tail")
        self._log_branch = self._tee.add_branch()
        
        self._log_thread = Thread(
            target=self._log_output,
            args=(self._log_branch,),
            daemon=True,
            name=f"{self.name}-output-logger"
        )
        self._log_thread.start()
        self._tee.start()
    
    def _log_output(self, branch: TeeBranch) -> None:
        for line in branch:
            self.output_logger.info(line.rstrip('\r\n'))
    
    def _detach_output(self) -> None:
        if self._tee:
            self._tee.close()
            self._tee.join(timeout=1)
        if self._tail:
            self._tail.stop()
        if self._log_branch:
            self._log_branch.close()
        if self._log_thread:
            self._log_thread.join(timeout=2)
            self._log_thread = None
        if self._process and self._process.stdout:
            try:
                self._process.stdout.close()
            except OSError:
                pass
    
    def is_alive(self) -> bool:
        process = self._process
        return process is not None and process.poll() is None
    
    def is_healthy(self) -> bool:
        """
        Whether the encoder is running and writing frames.
        
        Only the most recent output line is considered.
        """
        process = self._process
        if process is None:
            return False
        
        output = self.most_recent_output
        
        if process.poll() is not None:
            logger.error(
                f"{self.name} is no longer running, its most recent output line was: {output}"
            )
            return False
        
        parsed = self._parser.parse(output)
        if not self._parser.is_encoding(parsed):
            logger.error(
                f"{self.name} is running but doesn't appear to be encoding. "
                f"Its most recent output line was: {output}"
            )
            return False
        
        logger.debug(f"{self.name} appears healthy: {parsed}")
        return True
    
    def get_exit_code(self) -> Optional[int]:
        """Exit code of the process, or None if it is running or never started."""
        process = self._process
        if process is None:
            return None
        return process.poll()
    
    def stop(self) -> Optional[int]:
        """
        Stop the encoder and its output workers.
        
        No-op when nothing was launched; a process that already exited
        is not signalled again.
        
        Returns:
            Final exit code, or None if no process was launched
        """
        with self._lock:
            return self._stop_locked()
    
    def _stop_locked(self) -> Optional[int]:
        if self._process is None:
            logger.debug(f"No {self.name} process to stop")
            return None
        
        exit_code = stop_process(self._process, self.name, self.stop_timeout)
        self._detach_output()
        return exit_code
