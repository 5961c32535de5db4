"""
STI Builder Engine Module

- DockerEngineClient: EngineClient over the Docker Engine API
- connect: Build an engine client for a Request

Usage:
    from stibuilder.engine import connect

    engine = connect(request)
"""

from ..datacls import Request
from ..protocols import EngineClient
from .docker_engine import DockerEngineClient, wrap_engine_error


def connect(request: Request) -> EngineClient:
    """Establish an engine client from the request's endpoint and timeout."""
    return DockerEngineClient.connect(request.docker_url, request.timeout)


__all__ = [
    'DockerEngineClient',
    'wrap_engine_error',
    'connect',
]
