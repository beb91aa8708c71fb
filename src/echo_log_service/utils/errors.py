"""Error taxonomy shared by the storage, service and HTTP layers.

Every error carries the HTTP status the request boundary maps it to.
"""


class EchoLogError(Exception):
    """Base class for all service errors."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(EchoLogError):
    """A required field was missing or empty."""

    status_code = 400


class NotFoundError(EchoLogError):
    """No log entry exists with the requested id."""

    status_code = 404

    def __init__(self, log_id: str):
        self.log_id = log_id
        super().__init__(f"Log not found: {log_id}")


class StorageError(EchoLogError):
    """Reading or writing the record set failed."""

    status_code = 500


class UpstreamUnavailableError(EchoLogError):
    """The chat backend could not be reached."""

    status_code = 503


class UpstreamTimeoutError(EchoLogError):
    """The chat backend exceeded its deadline."""

    status_code = 504

    def __init__(self, message: str, timeout: float | None = None):
        self.timeout = timeout
        super().__init__(message)


class UpstreamError(EchoLogError):
    """The chat backend answered with a failure."""

    status_code = 500

    def __init__(self, message: str, upstream_status: int | None = None):
        self.upstream_status = upstream_status
        super().__init__(message)
