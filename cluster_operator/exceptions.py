"""
Domain errors raised by the cluster lifecycle code.

"Not found" is deliberately absent here: a missing resource is a valid
lookup result (models.Absent), never an exception.
"""
from typing import Optional, Sequence


class ClusterOperatorError(Exception):
    """Base class for all operator errors."""


class InvalidConfiguration(ClusterOperatorError, ValueError):
    """Desired-state parameters are unusable. Detected before any remote call."""


class StoreCommunicationError(ClusterOperatorError):
    """The Kubernetes API could not be reached or rejected a request."""

    def __init__(self, kind: str, namespace: str, name: str, reason: str = ""):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        self.reason = reason
        super().__init__(f"{kind} {namespace}/{name}: {reason or 'store request failed'}")


class PartialLifecycleFailure(ClusterOperatorError):
    """
    A step of an ordered create/delete sequence failed after earlier steps
    in the same call succeeded. Completed steps are left in place; calling
    the same operation again finishes the job.
    """

    def __init__(self, operation: str, failed_step: str, completed: Sequence[str],
                 cause: Optional[Exception] = None):
        self.operation = operation
        self.failed_step = failed_step
        self.completed = list(completed)
        self.cause = cause
        super().__init__(
            f"{operation} failed at {failed_step} after completing "
            f"{', '.join(self.completed)}: {cause}"
        )
