"""
Abstract repository interface for pod records.

This module defines the contract that any pod registry implementation must
follow. The orchestrator ships an in-memory implementation only; state lives
for the lifetime of the process.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from .models import Pod, PodState


class PodRepository(ABC):
    """
    Abstract base class for pod storage operations.

    Implementations must provide async-safe access to pod records. Every
    operation is linearizable per pod id, and returned records are copies
    that callers may not use to mutate the registry.
    """

    @abstractmethod
    async def insert(self, pod: Pod) -> None:
        """
        Register a fully created pod.

        Args:
            pod: Pod to store

        Raises:
            DuplicatePodError: If a pod with the same id already exists
        """
        pass

    @abstractmethod
    async def get(self, pod_id: str) -> Pod | None:
        """
        Retrieve a pod by its id.

        Args:
            pod_id: Workload id of the pod

        Returns:
            Pod if found, None otherwise
        """
        pass

    @abstractmethod
    async def delete(self, pod_id: str) -> Pod | None:
        """
        Remove a pod record (and with it, its node binding).

        Args:
            pod_id: Workload id of the pod

        Returns:
            The removed pod, or None if it was not present
        """
        pass

    @abstractmethod
    async def list_pods(self) -> list[Pod]:
        """
        List all pods at a single point in time.

        Returns:
            List of Pod copies; order is not meaningful
        """
        pass

    @abstractmethod
    async def transition(
        self,
        pod_id: str,
        to_state: PodState,
        allowed_from: Iterable[PodState],
        failure_reason: str | None = None,
    ) -> Pod:
        """
        Atomically move a pod to a new state if it is in an allowed state.

        Args:
            pod_id: Workload id of the pod
            to_state: Target state
            allowed_from: States the pod must currently be in
            failure_reason: Reason recorded alongside the new state

        Returns:
            Copy of the updated pod

        Raises:
            PodNotFoundError: If the pod is missing or not in an allowed state
        """
        pass
