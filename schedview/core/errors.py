"""
schedview exception hierarchy.

Every error raised by schedview inherits from SchedViewError.
Engine adapters raise EngineError (or a subclass) for failed queries.

Usage:
    try:
        snapshot = await builder.get_snapshot()
    except EngineError as e:
        # The engine failed mid-snapshot, refresh later
    except SchedViewError as e:
        # Any schedview error
"""


class SchedViewError(Exception):
    """Base exception for all schedview errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ━━━ Configuration ━━━


class ConfigError(SchedViewError):
    """Configuration is invalid, missing, or malformed."""

    pass


# ━━━ Engine ━━━


class EngineError(SchedViewError):
    """A query against the scheduling engine failed."""

    def __init__(
        self,
        message: str,
        operation: str = "",
        details: dict | None = None,
    ):
        self.operation = operation
        super().__init__(message, details)


class JobTypeUnavailableError(EngineError):
    """
    The engine cannot materialize a job's implementation type.

    Typical for remote deployments where the job class lives in code the
    engine host can see but this process cannot import.
    """

    def __init__(
        self,
        message: str,
        job_type: str = "",
        operation: str = "get_job_definition",
        details: dict | None = None,
    ):
        self.job_type = job_type
        super().__init__(message, operation, details)


class EngineStateError(SchedViewError):
    """In-memory engine state (or a state file describing it) is invalid."""

    pass
