"""
HTTP control API for the capture node.

Lets an operator check health, start a capture job and stop it.
"""

import asyncio
from typing import Optional

from aiohttp import web

from ..state.models import StartServiceResult
from ..state.requests import parse_start_request
from ..utils.config import Config
from ..utils.exceptions import RequestValidationError
from ..utils.logger import get_logger


logger = get_logger(__name__)

API_PREFIX = '/api/v1.0'

_RESULT_STATUS = {
    StartServiceResult.SUCCESS: 200,
    StartServiceResult.BUSY: 412,
    StartServiceResult.ERROR: 500,
}


class ControlServer:
    """
    Async HTTP server in front of a CaptureManager.
    
    Manager calls block (joining a call can take a while), so they run
    in the default executor rather than on the event loop.
    """
    
    def __init__(self, config: Config, manager):
        """
        Initialize control server.
        
        Args:
            config: Service configuration
            manager: CaptureManager handling the requests
        """
        self.config = config
        self.manager = manager
        
        server_config = config.get_server_config()
        self.host = server_config.get('host', '0.0.0.0')
        self.port = server_config.get('port', 2222)
        
        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
    
    def create_app(self) -> web.Application:
        """Create the aiohttp application."""
        app = web.Application()
        
        app.router.add_get(f'{API_PREFIX}/health', self._handle_health)
        app.router.add_post(f'{API_PREFIX}/startService', self._handle_start_service)
        app.router.add_post(f'{API_PREFIX}/stopService', self._handle_stop_service)
        
        return app
    
    async def _handle_health(self, request: web.Request) -> web.Response:
        """Report node health."""
        logger.debug("Got health request")
        status = self.manager.health_check()
        return web.json_response(status.to_dict())
    
    async def _handle_start_service(self, request: web.Request) -> web.Response:
        """Start a capture job described by the JSON body."""
        try:
            data = await request.json()
        except ValueError:
            return web.json_response({'error': 'Request body must be JSON'}, status=400)
        
        try:
            start_request = parse_start_request(data)
        except RequestValidationError as e:
            logger.warning(f"Rejected start request: {e}")
            return web.json_response({'error': str(e)}, status=400)
        
        logger.debug(f"Got a start service request for call {start_request.call_params.call_name}")
        
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, self.manager.start_service, start_request)
        
        return web.json_response({'result': result.value}, status=_RESULT_STATUS[result])
    
    async def _handle_stop_service(self, request: web.Request) -> web.Response:
        """Stop the current capture job."""
        logger.debug("Got stop service request")
        
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.manager.stop_service)
        
        return web.json_response({'result': 'stopped'})
    
    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self.create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        
        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()
        
        logger.info(f"Control API listening at http://{self.host}:{self.port}{API_PREFIX}")
    
    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            self._app = None
            logger.info("Control API stopped")


def create_control_server(config: Config, manager) -> ControlServer:
    """
    Factory function to create the control server.
    
    Args:
        config: Service configuration
        manager: CaptureManager handling the requests
        
    Returns:
        ControlServer instance
    """
    return ControlServer(config, manager)
