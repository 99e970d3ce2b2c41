"""
Pod lifecycle manager: sequences runtime calls with registry mutations.

Create reserves capacity first, then pulls, creates and starts the container,
and registers the pod only once it is running. Every failure before that point
is compensated (container removal, capacity release) so the pod never existed.
Delete stops and removes the container and only then releases capacity and
drops the record; if the runtime cannot remove the container the pod is left
Failed with its capacity held for an operator to reconcile.
"""

import asyncio
import logging
from dataclasses import replace

from pod_common.errors import (
    ContainerCreateError,
    ContainerStartError,
    DuplicatePodError,
    ImagePullError,
    InvalidSpecError,
    PodDeleteError,
    PodNotFoundError,
)
from pod_common.models import Node, Pod, PodSpec, PodState
from pod_common.repository import PodRepository
from pod_persistence.memory_repository import InMemoryPodRepository

from .container_runtime import ContainerRuntime
from .node_registry import NodeRegistry
from .scheduler import RoundRobinScheduler

logger = logging.getLogger(__name__)


class PodLifecycleManager:
    """
    Orchestration core owning the node registry, scheduler and pod registry.

    All mutation of cluster state goes through create() and delete(). Neither
    holds a lock while waiting on the container runtime; atomicity comes from
    the node registry (reserve/release) and the pod repository (transition).
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        nodes: list[Node],
        repository: PodRepository | None = None,
        pull_timeout: float = 300.0,
        operation_timeout: float = 30.0,
        label_prefix: str = "orchestrator",
    ):
        """
        Initialize the lifecycle manager.

        Args:
            runtime: Container runtime client
            nodes: Initial node set (usage counters are ignored; nodes start empty)
            repository: Pod registry (defaults to an in-memory registry)
            pull_timeout: Deadline in seconds for image pulls
            operation_timeout: Deadline in seconds for create/start/stop/remove
            label_prefix: Prefix of the labels attached to created containers
        """
        self.runtime = runtime
        self.node_registry = NodeRegistry(nodes)
        self.scheduler = RoundRobinScheduler(self.node_registry)
        self.repository = repository or InMemoryPodRepository()
        self.pull_timeout = pull_timeout
        self.operation_timeout = operation_timeout
        self.label_prefix = label_prefix

    async def create(self, spec: PodSpec) -> Pod:
        """
        Schedule a pod and bring its container up.

        Args:
            spec: Requested pod (image is required)

        Returns:
            The Running pod as registered

        Raises:
            InvalidSpecError: If the image is empty (no side effects)
            NoCapacityAvailableError: If every node is full (no side effects)
            ImagePullError: If the image could not be pulled (capacity released)
            ContainerCreateError: If the container could not be created (capacity released)
            ContainerStartError: If the container could not be started; capacity is
                released unless reservation_leaked is set, in which case a Failed
                pod records the container that could not be removed

        A cancelled create removes any container it created before the
        cancellation propagates.
        """
        image = (spec.image or "").strip()
        if not image:
            raise InvalidSpecError("Pod image must not be empty")

        pod = Pod(id="", name=spec.name, image=image)

        node_name = self.scheduler.select_node()
        pod.state = PodState.SCHEDULED
        pod.node_name = node_name
        logger.info(f"Pod {pod.name or '(unnamed)'} scheduled to node {node_name}")

        try:
            pod.id = await self._provision(pod)
        except BaseException:
            # A workload recorded as a Failed pod keeps its reservation
            if pod.state != PodState.FAILED:
                self.node_registry.release(node_name)
            raise

        pod.state = PodState.RUNNING
        try:
            await self.repository.insert(pod)
        except DuplicatePodError as e:
            # The handle already belongs to a registered pod; leave its container alone
            logger.error(f"Runtime returned workload id {pod.id} which is already bound")
            self.node_registry.release(node_name)
            raise ContainerCreateError(
                f"Runtime returned workload id {pod.id} already bound to a pod", [e]
            ) from e

        node = self.node_registry.get(node_name)
        logger.info(
            f"Pod {pod.id} ({pod.name or 'unnamed'}) running on node {node_name} "
            f"(used: {node.used}/{node.capacity})"
        )
        return pod

    async def _provision(self, pod: Pod) -> str:
        """Pull, create and start the pod's container; return its workload id."""
        try:
            await self.runtime.pull_image(pod.image, timeout=self.pull_timeout)
        except Exception as e:
            logger.error(f"Failed to pull image {pod.image}: {e}")
            raise ImagePullError(f"Failed to pull image '{pod.image}'", [e]) from e

        try:
            container_id = await self.runtime.create_container(
                pod.image, labels=self._labels(pod), timeout=self.operation_timeout
            )
        except Exception as e:
            logger.error(f"Failed to create container from {pod.image}: {e}")
            raise ContainerCreateError(
                f"Failed to create container using image '{pod.image}'", [e]
            ) from e

        # From here on a container exists, so cancellation must remove it too
        try:
            await self.runtime.start_container(container_id, timeout=self.operation_timeout)
        except BaseException as start_error:
            logger.warning(
                f"Failed to start container {container_id}: {start_error!r}; removing it"
            )
            try:
                await asyncio.shield(
                    self.runtime.remove_container(
                        container_id, force=True, timeout=self.operation_timeout
                    )
                )
            except BaseException as rollback_error:
                logger.error(
                    f"Rollback removal of container {container_id} failed; "
                    f"reservation on {pod.node_name} is leaked",
                    exc_info=True,
                )
                error = ContainerStartError(
                    f"Failed to start container '{container_id}' and to remove it",
                    [start_error, rollback_error],
                    reservation_leaked=True,
                    workload_id=container_id,
                )
                error.reservation_leaked = await self._record_leaked_pod(
                    pod, container_id, str(error)
                )
                if not isinstance(start_error, Exception):
                    raise start_error
                raise error from start_error
            if not isinstance(start_error, Exception):
                raise
            raise ContainerStartError(
                f"Failed to start container '{container_id}'",
                [start_error],
                workload_id=container_id,
            ) from start_error

        return container_id

    async def _record_leaked_pod(self, pod: Pod, workload_id: str, reason: str) -> bool:
        """
        Register a container that could not be rolled back as a Failed pod.

        Returns:
            True if the pod was recorded and keeps its reservation. False if
            the id is already registered, in which case the caller releases it.
        """
        pod.id = workload_id
        pod.failure_reason = reason
        try:
            await self.repository.insert(replace(pod, state=PodState.FAILED))
        except DuplicatePodError:
            logger.critical(
                f"Could not record leaked workload {workload_id} on node {pod.node_name}: "
                "id already registered; releasing its reservation"
            )
            return False
        pod.state = PodState.FAILED
        return True

    def _labels(self, pod: Pod) -> dict[str, str]:
        return {
            f"{self.label_prefix}.pod-name": pod.name,
            f"{self.label_prefix}.node": pod.node_name or "",
        }

    async def delete(self, pod_id: str) -> Pod:
        """
        Stop and remove a pod's container, then release its node capacity.

        Running pods and Failed pods (a retry of an earlier failed delete) can
        be deleted. Nothing is retried automatically.

        Args:
            pod_id: Workload id of the pod

        Returns:
            The removed pod, in state Deleted

        Raises:
            PodNotFoundError: If no such pod exists or it is already being deleted
            PodDeleteError: If the container could not be removed; the pod is
                left Failed and keeps its capacity
        """
        pod = await self.repository.transition(
            pod_id,
            PodState.DELETING,
            allowed_from=(PodState.RUNNING, PodState.FAILED),
        )
        logger.info(f"Deleting pod {pod_id} from node {pod.node_name}")

        try:
            await self._teardown(pod_id)
        except BaseException as e:
            reason = str(e) or type(e).__name__
            await self.repository.transition(
                pod_id,
                PodState.FAILED,
                allowed_from=(PodState.DELETING,),
                failure_reason=reason,
            )
            logger.error(f"Pod {pod_id} marked as failed: {reason}", exc_info=True)
            raise

        await self.repository.delete(pod_id)
        if pod.node_name:
            self.node_registry.release(pod.node_name)

        pod.state = PodState.DELETED
        logger.info(f"Pod {pod_id} deleted, capacity released on {pod.node_name}")
        return pod

    async def _teardown(self, pod_id: str) -> None:
        """Stop then remove a container; remove is attempted even if stop fails."""
        stop_error: Exception | None = None
        try:
            await self.runtime.stop_container(pod_id, timeout=self.operation_timeout)
        except Exception as e:
            stop_error = e
            logger.warning(f"Failed to stop container {pod_id}: {e}; forcing removal")

        try:
            await self.runtime.remove_container(
                pod_id, force=stop_error is not None, timeout=self.operation_timeout
            )
        except Exception as remove_error:
            causes = [cause for cause in (stop_error, remove_error) if cause is not None]
            raise PodDeleteError(
                f"Failed to delete pod {pod_id}", causes, reservation_leaked=True
            ) from remove_error

    async def get_pod(self, pod_id: str) -> Pod:
        """
        Raises:
            PodNotFoundError: If no such pod exists
        """
        pod = await self.repository.get(pod_id)
        if pod is None:
            raise PodNotFoundError(f"Pod {pod_id} not found")
        return pod

    async def list_pods(self) -> list[Pod]:
        return await self.repository.list_pods()

    def list_nodes(self) -> list[Node]:
        return self.node_registry.snapshot()

    def add_node(self, name: str, capacity: int) -> Node:
        return self.node_registry.add_node(name, capacity)
