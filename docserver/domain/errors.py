"""Exceptions raised while loading configuration and handling requests."""


class ConfigError(Exception):
    """Raised when the server configuration is missing or invalid."""


class MalformedRequest(ValueError):
    """Raised when the request line or a framing header cannot be parsed."""


class IncompleteBody(Exception):
    """Raised when the client closes the stream before the declared body arrives."""


class RequestEntityTooLarge(Exception):
    """Raised when a request body exceeds configured limits."""


class ForbiddenPath(Exception):
    """Raised when a requested path escapes the document root."""
