"""
Pod Common module.

This module contains shared domain models, errors and interfaces used across
the orchestrator components (server, controller, persistence).

The common module has no dependencies on other pod_* modules, making it
a pure domain layer that can be imported by any component.
"""

from .errors import (
    ContainerCreateError,
    ContainerStartError,
    DuplicatePodError,
    ImagePullError,
    InvalidSpecError,
    NoCapacityAvailableError,
    OrchestratorError,
    PodDeleteError,
    PodNotFoundError,
)
from .models import Node, Pod, PodSpec, PodState
from .repository import PodRepository

__all__ = [
    "ContainerCreateError",
    "ContainerStartError",
    "DuplicatePodError",
    "ImagePullError",
    "InvalidSpecError",
    "NoCapacityAvailableError",
    "Node",
    "OrchestratorError",
    "Pod",
    "PodDeleteError",
    "PodNotFoundError",
    "PodRepository",
    "PodSpec",
    "PodState",
]
