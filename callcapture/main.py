"""
Main entry point for the call capture service.

Wires the capture manager to the HTTP control API.
"""

import asyncio
import importlib
import signal
import sys
from typing import Optional

import click

from .manager import CaptureManager
from .server.control_server import ControlServer
from .service.call_session import CallSessionFactory
from .utils.config import Config, load_config
from .utils.exceptions import ConfigurationError
from .utils.logger import setup_from_config, get_logger


logger = None  # Initialize after config


def load_call_session_factory(path: Optional[str]) -> CallSessionFactory:
    """
    Resolve a call session factory from a "package.module:attribute" path.
    
    Raises:
        ConfigurationError: If the path is missing or cannot be imported
    """
    if not path:
        raise ConfigurationError("call.session_factory is not configured")
    
    module_name, sep, attribute = path.partition(':')
    if not sep or not module_name or not attribute:
        raise ConfigurationError(
            f"call.session_factory must look like 'package.module:factory', got {path!r}"
        )
    
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import call session module {module_name}: {e}")
    
    factory = getattr(module, attribute, None)
    if not callable(factory):
        raise ConfigurationError(f"{path} is not a callable call session factory")
    
    return factory


class CaptureApp:
    """
    Runs the control API until a shutdown signal arrives.
    """
    
    def __init__(self, config: Config, call_session_factory: CallSessionFactory):
        """
        Initialize the app with configuration.
        
        Args:
            config: Service configuration
            call_session_factory: Creates the browser session for a call
        """
        self.config = config
        
        global logger
        setup_from_config(config.get_logging_config())
        logger = get_logger(__name__)
        
        self.manager = CaptureManager(config, call_session_factory)
        self.server = ControlServer(config, self.manager)
        
        self._running = False
    
    def _setup_signals(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            signame = signal.Signals(signum).name
            logger.info(f"Received {signame}, initiating shutdown...")
            self._running = False
        
        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)
    
    async def run(self) -> None:
        """Main run loop."""
        self._setup_signals()
        await self.server.start()
        self._running = True
        logger.info("Call capture service started")
        
        try:
            while self._running:
                await asyncio.sleep(1)
        finally:
            await self.server.stop()
            self.manager.shutdown()
            logger.info("Call capture service stopped")


@click.command()
@click.option(
    '--config', '-c',
    default='config.yaml',
    help='Path to configuration file'
)
def main(config: str):
    """
    Call capture service
    
    Joins web calls on request and records or streams them with ffmpeg.
    """
    try:
        cfg = load_config(config)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    try:
        factory = load_call_session_factory(cfg.get('call.session_factory'))
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    
    app = CaptureApp(cfg, factory)
    
    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Service error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
