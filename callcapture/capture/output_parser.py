"""
Parser for ffmpeg status lines.

ffmpeg reports progress as a line of key=value pairs, e.g.:

    frame=  123 fps= 30 q=28.0 size=     512kB time=00:00:04.10 bitrate=1022.9kbits/s speed=1.01x

Only these lines are interpreted; anything else carries no signal.
"""

import re


_PAIR = re.compile(r'([A-Za-z_]\w*)=\s*(\S+)')
_STATUS_LINE = re.compile(r'\s*[A-Za-z_]\w*=\s*\S+(?:\s+[A-Za-z_]\w*=\s*\S+)*\s*')


class OutputParser:
    """Turns encoder status lines into dictionaries."""
    
    ENCODING_KEY = 'frame'
    
    def parse(self, line: str) -> dict[str, str]:
        """
        Parse a status line into key/value pairs.
        
        Args:
            line: A single line of encoder output
            
        Returns:
            Mapping of keys to raw string values; empty if the line
            is not a status line
        """
        if not line or not _STATUS_LINE.fullmatch(line):
            return {}
        return dict(_PAIR.findall(line))
    
    def is_encoding(self, parsed: dict[str, str]) -> bool:
        """Whether a parsed line shows the encoder writing frames."""
        return self.ENCODING_KEY in parsed
