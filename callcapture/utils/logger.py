"""
Logging setup for the call capture service.

Provides console and rotating file logging, plus a dedicated logger
for raw encoder output.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}
_initialized = False

PROCESS_OUTPUT_LOGGER = 'callcapture.ffmpeg'


def setup_logging(
    log_file: Optional[str] = None,
    level: str = 'INFO',
    max_size_mb: int = 50,
    backup_count: int = 5,
    log_format: Optional[str] = None,
    console: bool = True
) -> None:
    """
    Initialize logging configuration.
    
    Args:
        log_file: Path to log file (None = no file logging)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        max_size_mb: Maximum log file size in MB before rotation
        backup_count: Number of backup files to keep
        log_format: Log format string
        console: Whether to log to console
    """
    global _initialized
    
    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers = []
    
    formatter = logging.Formatter(log_format)
    
    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)
    
    if log_file:
        root_logger.addHandler(
            _rotating_handler(log_file, max_size_mb, backup_count, formatter, numeric_level)
        )
    
    _initialized = True


def _rotating_handler(
    log_file: str,
    max_size_mb: int,
    backup_count: int,
    formatter: logging.Formatter,
    level: int = logging.NOTSET
) -> RotatingFileHandler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    
    handler = RotatingFileHandler(
        log_path,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the specified module.
    
    Args:
        name: Logger name (usually __name__)
        
    Returns:
        Configured logger instance
    """
    global _initialized
    
    if name not in _loggers:
        if not _initialized:
            setup_logging()
        
        _loggers[name] = logging.getLogger(name)
    
    return _loggers[name]


def get_process_output_logger(
    log_file: Optional[str] = None,
    max_size_mb: int = 50,
    backup_count: int = 5
) -> logging.Logger:
    """
    Get the logger that receives raw encoder output.
    
    When a log file is given the logger writes only to that file and
    stops propagating, so encoder chatter stays out of the service log.
    
    Args:
        log_file: Path to the encoder output log (None = use the service log)
        max_size_mb: Maximum log file size in MB before rotation
        backup_count: Number of backup files to keep
        
    Returns:
        Logger for encoder output lines
    """
    output_logger = get_logger(PROCESS_OUTPUT_LOGGER)
    
    if log_file:
        output_logger.handlers = [
            _rotating_handler(
                log_file,
                max_size_mb,
                backup_count,
                logging.Formatter('%(asctime)s %(message)s')
            )
        ]
        output_logger.setLevel(logging.INFO)
        output_logger.propagate = False
    
    return output_logger


def setup_from_config(config: dict) -> None:
    """
    Setup logging from configuration dictionary.
    
    Args:
        config: Logging configuration dict with keys:
            - level: Log level
            - file: Log file path
            - max_size_mb: Max file size
            - backup_count: Backup count
            - format: Log format
            - console: Console output enabled
    """
    setup_logging(
        log_file=config.get('file'),
        level=config.get('level', 'INFO'),
        max_size_mb=config.get('max_size_mb', 50),
        backup_count=config.get('backup_count', 5),
        log_format=config.get('format'),
        console=config.get('console', True)
    )
