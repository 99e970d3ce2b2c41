"""
Typed errors raised by the pod lifecycle manager.

Every runtime failure is wrapped in one of these before it leaves the
orchestration core, so callers always receive a typed error that names the
failed step and carries the underlying cause(s).
"""

from typing import Any


class OrchestratorError(Exception):
    """
    Base class for all errors surfaced by the orchestrator core.

    Attributes:
        code: Stable error name exposed to API clients
        causes: Underlying exceptions, in the order they occurred
        reservation_leaked: True when node capacity is still held by a
                            workload that could not be cleaned up
    """

    code = "OrchestratorError"

    def __init__(
        self,
        message: str,
        causes: list[BaseException] | None = None,
        reservation_leaked: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.causes = list(causes or [])
        self.reservation_leaked = reservation_leaked

    def __str__(self) -> str:
        if not self.causes:
            return self.message
        details = "; ".join(str(cause) or type(cause).__name__ for cause in self.causes)
        return f"{self.message}: {details}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary format (for API responses)."""
        return {
            "error": self.code,
            "detail": self.message,
            "causes": [str(cause) or type(cause).__name__ for cause in self.causes],
            "reservation_leaked": self.reservation_leaked,
        }


class InvalidSpecError(OrchestratorError):
    """The pod spec was rejected before any side effect."""

    code = "InvalidSpec"


class NoCapacityAvailableError(OrchestratorError):
    """No node had a free capacity unit; nothing was reserved."""

    code = "NoCapacityAvailable"


class ImagePullError(OrchestratorError):
    """The runtime could not pull the image; the reservation was released."""

    code = "ImagePullFailed"


class ContainerCreateError(OrchestratorError):
    """The runtime could not create the container; the reservation was released."""

    code = "ContainerCreateFailed"


class ContainerStartError(OrchestratorError):
    """
    The runtime could not start the created container.

    If the rollback removal also failed, both causes are carried and
    reservation_leaked is set: the container may still exist on the node,
    so its capacity stays held and a Failed pod records it.
    """

    code = "ContainerStartFailed"

    def __init__(
        self,
        message: str,
        causes: list[BaseException] | None = None,
        reservation_leaked: bool = False,
        workload_id: str | None = None,
    ):
        super().__init__(message, causes, reservation_leaked)
        self.workload_id = workload_id


class PodDeleteError(OrchestratorError):
    """Stop/remove failed; the pod is left Failed and keeps its capacity."""

    code = "DeleteFailed"


class PodNotFoundError(OrchestratorError):
    """No active pod with the requested id."""

    code = "NotFound"


class DuplicatePodError(Exception):
    """A pod with the same id is already registered."""
