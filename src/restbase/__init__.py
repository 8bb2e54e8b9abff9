"""restbase -- a base class for typed JSON REST API clients.

Subclass :class:`~restbase.client.RestClient` with the API's base URL and
expose one method per endpoint; the base class resolves paths, serialises
request bodies as JSON, applies an optional per-call deadline and decodes
responses into typed values.

Typical usage::

    from restbase import RestClient

    class UsersApi(RestClient):
        def __init__(self) -> None:
            super().__init__("https://api.example.com/v1/", timeout=10)

        async def user(self, user_id: int) -> User:
            return await self.get_async(f"users/{user_id}", response_type=User)

Modules:
    client: The request pipeline plus request/response helpers.
    codec: JSON encoding and typed decoding.
    constants: Header names and the fixed JSON content type.
    exceptions: Exception hierarchy.
    models: Pydantic models for client configuration.
    output: stderr diagnostics with Rich support.
"""

from restbase.client import RestClient
from restbase.client.request import bearer, set_authorization, set_user_agent
from restbase.client.response import inspect, read, read_async
from restbase.models import ClientConfig, HTTPMethod

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "HTTPMethod",
    "RestClient",
    "bearer",
    "inspect",
    "read",
    "read_async",
    "set_authorization",
    "set_user_agent",
]
