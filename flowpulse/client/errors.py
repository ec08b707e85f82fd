"""Error taxonomy for calls to the automation server."""


class GatewayError(Exception):
    """Base class for failures talking to the automation server."""


class ConnectionFailedError(GatewayError):
    """Transport failure: server unreachable, DNS, TLS or CORS rejection.

    Never retried automatically; the caller re-invokes.
    """

    DEFAULT_MESSAGE = "Cannot connect to the server. Check the URL or CORS settings."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.DEFAULT_MESSAGE)


class UpstreamError(GatewayError):
    """The server answered with a 4xx/5xx status."""

    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        self.message = message or f"Error: {status_code}"
        super().__init__(self.message)


class CredentialsError(Exception):
    """No usable credentials are configured."""
