"""
Capture a call into recording files on disk.
"""

import json
import subprocess
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..capture.sink import FileSink
from ..state.models import CallParams, RecordingMetadata
from ..utils.logger import get_logger
from .base import CaptureService
from .call_session import CallSession


logger = get_logger(__name__)

METADATA_FILENAME = 'metadata.json'


@dataclass
class RecordingOptions:
    """Where and how a recording job writes its output."""
    
    # Base directory; each job records into its own subdirectory
    recording_directory: Path
    call_params: CallParams
    # Run with the job's directory as its only argument once recording ends
    finalize_script_path: Optional[str] = None


class FileRecordingService(CaptureService):
    """
    Records a call to files.
    
    Every launch writes to a new file in the job directory. When the job
    stops, the participant list is written next to the recordings and
    the finalize script runs (blocking until it exits).
    """
    
    def __init__(self, recording_options: RecordingOptions, call_session: CallSession, **kwargs):
        super().__init__(recording_options.call_params, call_session, **kwargs)
        self.recording_options = recording_options
        self.session_id = uuid.uuid4().hex[:12]
        self.session_directory = Path(recording_options.recording_directory) / self.session_id
    
    def _create_sink(self) -> FileSink:
        self.session_directory.mkdir(parents=True, exist_ok=True)
        return FileSink.create(self.session_directory, self.call_params.call_name)
    
    def _before_leave(self) -> None:
        self.write_metadata(RecordingMetadata(self.call_session.get_participants()))
    
    def write_metadata(self, metadata: RecordingMetadata) -> Path:
        """Write recording metadata into the job directory."""
        self.session_directory.mkdir(parents=True, exist_ok=True)
        path = self.session_directory / METADATA_FILENAME
        
        with open(path, 'w') as f:
            json.dump(metadata.to_dict(), f, indent=2)
        
        logger.info(f"Wrote metadata for {len(metadata.participants)} participant(s) to {path}")
        return path
    
    def _finalize(self) -> None:
        """
        Run the finalize script on the job directory.
        
        Blocks until the script exits. Failures are logged only; the
        recording itself is already complete.
        """
        script = self.recording_options.finalize_script_path
        if not script:
            logger.info("No finalize script configured")
            return
        
        logger.info(f"Running finalize script {script} on {self.session_directory}")
        
        try:
            result = subprocess.run([script, str(self.session_directory)])
        except OSError as e:
            logger.error(f"Failed to run finalize script: {e}")
            return
        
        if result.returncode == 0:
            logger.info("Recording finalize script finished successfully")
        else:
            logger.error(f"Recording finalize script finished with exit value {result.returncode}")
