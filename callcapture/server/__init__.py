"""
Server module for the call capture service.

Provides the HTTP control API.
"""

from .control_server import ControlServer, create_control_server

__all__ = [
    'ControlServer',
    'create_control_server',
]
