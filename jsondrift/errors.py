# ==============================================
# Errors
# ==============================================
#
# Every recoverable condition in the engine (oversized sample request,
# production-mode downgrade, skipped document) is reported as a warning
# attached to a result. Exceptions here are raised only for misuse or
# for a single bad document, which the orchestrator catches and counts.
#
# ==============================================


class JsonDriftError(Exception):
    """Base class for all jsondrift errors."""


class MalformedDocumentError(JsonDriftError):
    """A raw column value could not be decoded as JSON."""

    def __init__(self, message: str, raw_preview: str = ""):
        super().__init__(message)
        self.raw_preview = raw_preview


class PlanningError(JsonDriftError, ValueError):
    """Sampling planner received inputs it cannot plan for."""


class AccumulatorConsumedError(JsonDriftError):
    """The accumulator was used after into_map() consumed it."""
