"""
Error taxonomy

Every failure that reaches the user is one of these. status_code is the HTTP status the API answers with.
"""


class HealthLabError(Exception):
    """Base class for all user-facing analysis errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(HealthLabError):
    """Required Langflow settings are missing."""
    status_code = 500


class InvalidRequest(HealthLabError):
    """The submitted form is incomplete or the file is not a PDF."""
    status_code = 400


class NetworkError(HealthLabError):
    """The engine could not be reached (connection refused, DNS, ...)."""
    status_code = 503


class UpstreamTimeout(HealthLabError):
    """The engine did not answer within the configured timeout."""
    status_code = 504


class UpstreamError(HealthLabError):
    """The engine answered with a non-2xx status or an unusable body."""
    status_code = 502

    def __init__(self, message: str, upstream_status: int = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class MalformedEnvelope(HealthLabError):
    """No analysis text at either known location of the engine response."""
    status_code = 502


class UnparsableAnalysis(HealthLabError):
    """The analysis text is not a JSON object and structured output was required."""
    status_code = 502
