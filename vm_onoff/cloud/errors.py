"""Exceptions raised by cloud providers and the registry."""


class ProviderError(Exception):
    """Base class for every error a provider operation can raise."""


class TransportError(ProviderError):
    """Raised when the request never got a response (connection, DNS, TLS)."""


class ServerError(ProviderError):
    """Raised when the remote end answers with a non-2xx status code."""

    def __init__(self, status_code: int, url: str | None = None):
        self.status_code = status_code
        self.url = url
        super().__init__(f"{status_code} status code")


class DecodeError(ProviderError):
    """Raised when a response body is not the JSON we expect."""


class IdParseError(ProviderError):
    """Raised when an opaque or composite identifier has the wrong shape."""

    def __init__(self, value: str, reason: str = "unable to parse the ID"):
        self.value = value
        super().__init__(f"{reason}: {value!r}")


class AuthError(ProviderError):
    """Raised when an access token could not be obtained.

    The underlying failure is available as ``__cause__``.
    """


class UnknownProviderError(ProviderError):
    """Raised when no provider is registered under the requested key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown provider: {key}")


class InstanceGoneError(ProviderError):
    """Raised when an instance disappears right after an action on it."""

    def __init__(self, key: str, instance_id: str):
        self.key = key
        self.instance_id = instance_id
        super().__init__(f"Instance {instance_id} is gone from provider {key}")
