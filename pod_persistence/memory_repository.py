"""
In-memory implementation of the PodRepository interface.

Pod records live for the lifetime of the process. A single asyncio lock
serialises every operation, and records are copied on the way in and out so
no caller can mutate registry state outside a lock.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import replace

from pod_common.errors import DuplicatePodError, PodNotFoundError
from pod_common.models import Pod, PodState
from pod_common.repository import PodRepository

logger = logging.getLogger(__name__)


class InMemoryPodRepository(PodRepository):
    """Dictionary-backed pod registry keyed by pod id."""

    def __init__(self):
        self._pods: dict[str, Pod] = {}
        self._lock = asyncio.Lock()

    async def insert(self, pod: Pod) -> None:
        async with self._lock:
            if pod.id in self._pods:
                raise DuplicatePodError(f"Pod {pod.id} already exists")
            self._pods[pod.id] = replace(pod)
        logger.debug(f"Inserted pod {pod.id} (state={pod.state.value})")

    async def get(self, pod_id: str) -> Pod | None:
        async with self._lock:
            pod = self._pods.get(pod_id)
            return replace(pod) if pod else None

    async def delete(self, pod_id: str) -> Pod | None:
        async with self._lock:
            pod = self._pods.pop(pod_id, None)
        if pod:
            logger.debug(f"Deleted pod record {pod_id}")
        return pod

    async def list_pods(self) -> list[Pod]:
        async with self._lock:
            return [replace(pod) for pod in self._pods.values()]

    async def transition(
        self,
        pod_id: str,
        to_state: PodState,
        allowed_from: Iterable[PodState],
        failure_reason: str | None = None,
    ) -> Pod:
        allowed = set(allowed_from)
        async with self._lock:
            pod = self._pods.get(pod_id)
            if pod is None:
                raise PodNotFoundError(f"Pod {pod_id} not found")
            if pod.state not in allowed:
                raise PodNotFoundError(
                    f"Pod {pod_id} is {pod.state.value}, expected one of "
                    f"{sorted(state.value for state in allowed)}"
                )
            previous = pod.state
            pod.state = to_state
            pod.failure_reason = failure_reason
            updated = replace(pod)

        logger.debug(f"Pod {pod_id}: {previous.value} -> {to_state.value}")
        return updated
