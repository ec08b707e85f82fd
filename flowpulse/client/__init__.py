"""Client layer: credentials, HTTP gateway and data provider."""

from flowpulse.client.credentials import CredentialStore
from flowpulse.client.errors import (
    ConnectionFailedError,
    CredentialsError,
    GatewayError,
    UpstreamError,
)
from flowpulse.client.gateway import GatewayMode, HttpGateway
from flowpulse.client.provider import DataProvider, open_provider

__all__ = [
    "ConnectionFailedError",
    "CredentialStore",
    "CredentialsError",
    "DataProvider",
    "GatewayError",
    "GatewayMode",
    "HttpGateway",
    "UpstreamError",
    "open_provider",
]
