"""
Configuration loader for the call capture service.

Loads YAML configuration with environment variable substitution.
"""

import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError


# Load .env file if present
load_dotenv()


class Config:
    """
    Configuration manager with environment variable substitution.
    
    Usage:
        config = Config.load('config.yaml')
        directory = config.get('recording.directory')
        rtmp_url = config.get('streaming.rtmp_url', default='rtmp://...')
    """
    
    _instance: Optional['Config'] = None
    _env_pattern = re.compile(r'\$\{([^}]+)\}')
    
    def __init__(self, config_data: dict):
        self._data = config_data
    
    @classmethod
    def load(cls, config_path: str = 'config.yaml') -> 'Config':
        """
        Load configuration from YAML file.
        
        Args:
            config_path: Path to YAML configuration file
            
        Returns:
            Config instance
            
        Raises:
            ConfigurationError: If file not found or invalid YAML
        """
        path = Path(config_path)
        
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        
        try:
            with open(path, 'r') as f:
                raw_content = f.read()
            
            content = cls._substitute_env_vars(raw_content)
            data = yaml.safe_load(content)
            
            if not isinstance(data, dict):
                raise ConfigurationError("Configuration must be a YAML dictionary")
            
            instance = cls(data)
            instance.validate()
            
            cls._instance = instance
            
            return instance
            
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration: {e}")
    
    @classmethod
    def get_instance(cls) -> 'Config':
        """Get the singleton Config instance."""
        if cls._instance is None:
            raise ConfigurationError("Configuration not loaded. Call Config.load() first.")
        return cls._instance
    
    @classmethod
    def _substitute_env_vars(cls, content: str) -> str:
        """
        Substitute ${VAR} patterns with environment variable values.
        
        Args:
            content: Raw file content
            
        Returns:
            Content with environment variables substituted
        """
        def replace(match):
            var_name = match.group(1)
            value = os.environ.get(var_name)
            if value is None:
                # Keep original if not found (might be optional)
                return match.group(0)
            return value
        
        return cls._env_pattern.sub(replace, content)
    
    def validate(self) -> None:
        """
        Validate required configuration fields.
        
        Raises:
            ConfigurationError: If required fields are missing or invalid
        """
        required_fields = [
            'recording.directory',
        ]
        
        for field in required_fields:
            value = self.get(field)
            if value is None or value == '':
                raise ConfigurationError(f"Required configuration field missing: {field}")
        
        resolution = self.get('capture.resolution', '1280x720')
        if not isinstance(resolution, str) or not re.match(r'^\d+x\d+$', resolution):
            raise ConfigurationError(f"Invalid resolution format: {resolution}")
        
        for field in ('health.initial_delay', 'health.check_interval', 'health.stop_timeout'):
            value = self.get(field)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"{field} must be a positive number")
        
        max_restarts = self.get('health.max_restarts', 1)
        if isinstance(max_restarts, bool) or not isinstance(max_restarts, int) or max_restarts < 0:
            raise ConfigurationError("health.max_restarts must be a non-negative integer")
    
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-separated key.
        
        Args:
            key: Dot-separated key (e.g., 'recording.directory')
            default: Default value if key not found
            
        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self._data
        
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        
        return value
    
    def get_capture_config(self) -> dict:
        """Get capture (encoder) configuration section."""
        return self._data.get('capture', {})
    
    def get_recording_config(self) -> dict:
        """Get file recording configuration section."""
        return self._data.get('recording', {})
    
    def get_streaming_config(self) -> dict:
        """Get streaming configuration section."""
        return self._data.get('streaming', {})
    
    def get_health_config(self) -> dict:
        """Get encoder health monitoring configuration section."""
        return self._data.get('health', {})
    
    def get_call_config(self) -> dict:
        """Get call session configuration section."""
        return self._data.get('call', {})
    
    def get_server_config(self) -> dict:
        """Get control server configuration section."""
        return self._data.get('server', {})
    
    def get_logging_config(self) -> dict:
        """Get logging configuration section."""
        return self._data.get('logging', {})
    
    def get_recordings_dir(self) -> Path:
        """Get base recordings directory as Path object."""
        return Path(self.get('recording.directory', './data/recordings'))
    
    def get_finalize_script(self) -> Optional[str]:
        """Get the path of the script run after each recording, if any."""
        return self.get('recording.finalize_script') or None
    
    def get_log_file(self) -> Path:
        """Get log file path as Path object."""
        log_file = self.get('logging.file', './data/logs/callcapture.log')
        return Path(log_file)
    
    def to_dict(self) -> dict:
        """Return configuration as dictionary."""
        return self._data.copy()


def load_config(config_path: str = 'config.yaml') -> Config:
    """
    Convenience function to load configuration.
    
    Args:
        config_path: Path to YAML configuration file
        
    Returns:
        Config instance
    """
    return Config.load(config_path)


def get_config() -> Config:
    """
    Get the current configuration instance.
    
    Returns:
        Config instance
        
    Raises:
        ConfigurationError: If configuration not loaded
    """
    return Config.get_instance()
