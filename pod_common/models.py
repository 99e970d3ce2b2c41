"""
Data models for pods and nodes.

These models represent the domain objects used throughout the orchestrator,
independent of the registry implementation that stores them.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class PodState(str, Enum):
    """
    Lifecycle states of a pod.

    Pods progress through states: Pending -> Scheduled -> Running
    -> Deleting -> Deleted. A pod whose delete (or start rollback) could
    not complete is left in Failed and keeps its node reservation.
    """

    PENDING = "Pending"
    SCHEDULED = "Scheduled"
    RUNNING = "Running"
    DELETING = "Deleting"
    DELETED = "Deleted"
    FAILED = "Failed"


# States in which a pod bound to a node holds one unit of its capacity
RESERVATION_HOLDING_STATES = frozenset(
    {PodState.SCHEDULED, PodState.RUNNING, PodState.DELETING, PodState.FAILED}
)


@dataclass
class PodSpec:
    """Client-supplied description of a pod to create."""

    image: str
    name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PodSpec":
        """Create a spec from a request payload."""
        return cls(image=data.get("image") or "", name=data.get("name") or "")


@dataclass
class Pod:
    """
    Represents a pod: one container workload bound to one node.

    The id is the workload handle returned by the container runtime, so it
    is only known once the container has been created.
    """

    id: str
    name: str
    image: str
    state: PodState = PodState.PENDING
    node_name: str | None = None  # Set once a node is reserved
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    failure_reason: str | None = None  # Set when state is Failed

    @property
    def holds_reservation(self) -> bool:
        """Whether this pod currently accounts for a unit of node capacity."""
        return self.node_name is not None and self.state in RESERVATION_HOLDING_STATES

    def to_dict(self) -> dict[str, Any]:
        """Convert pod to dictionary format (for API responses)."""
        return {
            "id": self.id,
            "name": self.name,
            "image": self.image,
            "state": self.state.value,
            "node_name": self.node_name,
            "created_at": self.created_at.isoformat(),
            "failure_reason": self.failure_reason,
        }


@dataclass
class Node:
    """A capacity-bounded placement target for pods."""

    name: str
    capacity: int
    used: int = 0

    @property
    def available(self) -> int:
        return self.capacity - self.used

    def to_dict(self) -> dict[str, Any]:
        """Convert node to dictionary format (for API responses)."""
        return {
            "name": self.name,
            "capacity": self.capacity,
            "used": self.used,
            "available": self.available,
        }
