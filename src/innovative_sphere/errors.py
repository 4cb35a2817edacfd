"""Error taxonomy shared by the generation pipeline, catalog, and API layers."""

from __future__ import annotations


class InnovativeSphereError(Exception):
    """Base error carrying a machine-readable ``kind`` and an HTTP status hint."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InnovativeSphereError):
    kind = "validation_error"
    status_code = 400


class NotFoundError(InnovativeSphereError):
    kind = "not_found"
    status_code = 404

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictError(InnovativeSphereError):
    kind = "conflict"
    status_code = 409


class DatabaseError(InnovativeSphereError):
    kind = "database_error"


class GenerationError(InnovativeSphereError):
    """Catch-all for idea generation failures."""

    kind = "generation_error"


class ParseError(GenerationError):
    kind = "parse_error"


class UpstreamError(GenerationError):
    """Failure talking to the completion endpoint."""

    kind = "upstream_failure"


class RateLimited(UpstreamError):
    kind = "rate_limited"
    status_code = 429


class Unauthorized(UpstreamError):
    kind = "unauthorized"
    status_code = 502


class UpstreamTimeout(UpstreamError):
    kind = "timeout"
    status_code = 504


class MalformedUpstreamResponse(UpstreamError):
    kind = "malformed_upstream_response"
