"""
Fan-out of a line stream to independently readable branches.

The encoder's combined output is read once and mirrored to every branch,
so the raw log writer and the health tail never block each other.
"""

import queue
import threading
from threading import Thread
from typing import Iterator, Optional

from ..utils.logger import get_logger


logger = get_logger(__name__)


class TeeBranch:
    """
    One readable copy of a teed stream.
    
    Receives every line written after its creation. readline() blocks
    until a line is available and returns '' once the branch is closed
    and drained, like a file at EOF.
    """
    
    _EOF = object()
    
    def __init__(self):
        self._queue: queue.Queue = queue.Queue()
        self._closed = False
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    def write(self, line: str) -> bool:
        """Queue a line for readers. Returns False if the branch is closed."""
        if self._closed:
            return False
        self._queue.put(line)
        return True
    
    def readline(self, timeout: Optional[float] = None) -> str:
        """
        Read the next line.
        
        Args:
            timeout: Seconds to wait (None = wait forever)
            
        Returns:
            The next line, or '' at end of stream or on timeout
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return ''
        
        if item is self._EOF:
            # Leave the marker for any other reader of this branch
            self._queue.put(self._EOF)
            return ''
        return item
    
    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(self._EOF)
    
    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.readline()
            if not line:
                return
            yield line


class StreamTee:
    """
    Mirrors a line-oriented source into any number of branches.
    
    Branches can be added or removed while the read loop is running;
    the loop iterates over a snapshot of the branch list, so a branch
    added mid-stream only sees lines read after it was added.
    """
    
    def __init__(self, source, name: str = 'stream-tee'):
        """
        Args:
            source: Object with a readline() method (e.g. a text pipe)
            name: Thread name for the read loop
        """
        self.source = source
        self.name = name
        
        self._branches: list[TeeBranch] = []
        self._lock = threading.Lock()
        self._thread: Optional[Thread] = None
        self._closed = False
    
    def add_branch(self) -> TeeBranch:
        """Create a branch that receives all lines from now on."""
        branch = TeeBranch()
        with self._lock:
            if self._closed:
                branch.close()
            else:
                self._branches = self._branches + [branch]
        return branch
    
    def remove_branch(self, branch: TeeBranch) -> None:
        with self._lock:
            self._branches = [b for b in self._branches if b is not branch]
        branch.close()
    
    @property
    def branch_count(self) -> int:
        return len(self._branches)
    
    def read(self) -> bool:
        """
        Read one line from the source and write it to every branch.
        
        Returns:
            False once the source is exhausted or unreadable
        """
        try:
            line = self.source.readline()
        except (OSError, ValueError) as e:
            logger.debug(f"{self.name}: source read failed: {e}")
            return False
        
        if not line:
            return False
        
        with self._lock:
            branches = self._branches
        
        for branch in branches:
            try:
                delivered = branch.write(line)
            except Exception as e:
                logger.debug(f"{self.name}: dropping branch after write failure: {e}")
                delivered = False
            if not delivered:
                self.remove_branch(branch)
        
        return True
    
    def start(self) -> None:
        """Run the read loop on a background thread until the source ends."""
        self._thread = Thread(target=self._read_loop, daemon=True, name=self.name)
        self._thread.start()
    
    def _read_loop(self) -> None:
        while not self._closed and self.read():
            pass
        self.close()
    
    def close(self) -> None:
        """Stop feeding branches and close all of them."""
        with self._lock:
            self._closed = True
            branches, self._branches = self._branches, []
        
        for branch in branches:
            branch.close()
    
    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)


class TailTracker:
    """
    Keeps only the most recent line of a branch.
    
    Health checks look at a single sample; no history is retained.
    """
    
    def __init__(self, branch: TeeBranch, name: str = 'stream-tail'):
        self.branch = branch
        self._most_recent_line = ''
        self._thread = Thread(target=self._follow, daemon=True, name=name)
        self._thread.start()
    
    @property
    def most_recent_line(self) -> str:
        return self._most_recent_line
    
    def _follow(self) -> None:
        for line in self.branch:
            self._most_recent_line = line.rstrip('\r\n')
    
    def stop(self) -> None:
        self.branch.close()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
