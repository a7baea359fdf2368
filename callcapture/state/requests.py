"""
Start requests accepted by the control API.

A request is exactly one of the sink variants below; parse_start_request
rejects anything else with a RequestValidationError.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .models import CallParams, SipClientParams
from ..utils.exceptions import RequestValidationError


@dataclass
class FileRecordingRequest:
    call_params: CallParams


@dataclass
class StreamingRequest:
    call_params: CallParams
    stream_key: str = ''
    stream_url: Optional[str] = None


@dataclass
class GatewayRequest:
    call_params: CallParams
    sip_client_params: SipClientParams


StartServiceRequest = Union[FileRecordingRequest, StreamingRequest, GatewayRequest]

SINK_TYPES = ('file', 'stream', 'gateway')


def _section(data: dict, key: str, path: str) -> dict:
    """Get an optional JSON object, rejecting any other type."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise RequestValidationError(f"{path} must be a JSON object")
    return value


def _check_strings(section: dict, keys: tuple, path: str) -> None:
    """Reject present-but-non-string values for keys."""
    for key in keys:
        value = section.get(key)
        if value is not None and not isinstance(value, str):
            name = f"{path}.{key}" if path else key
            raise RequestValidationError(f"{name} must be a string")


def parse_start_request(data) -> StartServiceRequest:
    """
    Validate a startService JSON body.
    
    Args:
        data: Decoded JSON body
        
    Returns:
        The request variant selected by sinkType
        
    Raises:
        RequestValidationError: If the body does not describe a valid request
    """
    if not isinstance(data, dict):
        raise RequestValidationError("Request body must be a JSON object")
    
    call_data = data.get('callParams')
    if not isinstance(call_data, dict):
        raise RequestValidationError("callParams is required")
    
    url_info = _section(call_data, 'callUrlInfo', 'callParams.callUrlInfo')
    _check_strings(url_info, ('baseUrl', 'callName'), 'callParams.callUrlInfo')
    login = _section(call_data, 'callLoginParams', 'callParams.callLoginParams')
    _check_strings(login, ('domain', 'username', 'password'), 'callParams.callLoginParams')
    _check_strings(data, ('sinkType', 'youTubeStreamKey', 'streamUrl'), '')
    
    call_params = CallParams.from_dict(call_data)
    if not call_params.call_name:
        raise RequestValidationError("callParams.callUrlInfo.callName is required")
    
    sink_type = (data.get('sinkType') or 'file').lower()
    
    if sink_type == 'file':
        return FileRecordingRequest(call_params)
    
    if sink_type == 'stream':
        stream_key = data.get('youTubeStreamKey') or ''
        stream_url = data.get('streamUrl') or None
        if not stream_key and not stream_url:
            raise RequestValidationError("Streaming requires youTubeStreamKey or streamUrl")
        return StreamingRequest(call_params, stream_key=stream_key, stream_url=stream_url)
    
    if sink_type == 'gateway':
        sip_data = _section(data, 'sipClientParams', 'sipClientParams')
        _check_strings(sip_data, ('sipAddress', 'displayName'), 'sipClientParams')
        if not sip_data.get('sipAddress'):
            raise RequestValidationError("Gateway requires sipClientParams with a sipAddress")
        return GatewayRequest(
            call_params,
            SipClientParams(
                sip_address=sip_data['sipAddress'],
                display_name=sip_data.get('displayName') or '',
            )
        )
    
    raise RequestValidationError(
        f"Unknown sinkType {sink_type!r}, expected one of: {', '.join(SINK_TYPES)}"
    )
