"""
Container runtime client for Docker-based pod execution.

This module provides an abstraction over the container runtime operations the
lifecycle manager needs: pull an image, create a container from it, and
start, stop and remove that container by its workload handle. Every call
accepts a deadline in seconds; a call that overruns it raises TimeoutError.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class ContainerRuntime(ABC):
    """
    Narrow container runtime capability consumed by the lifecycle manager.

    Implementations raise RuntimeError when an operation fails and
    TimeoutError when it does not complete within the given timeout.
    """

    @abstractmethod
    async def pull_image(self, image: str, timeout: float | None = None) -> None:
        """Make the image available locally."""
        pass

    @abstractmethod
    async def create_container(
        self,
        image: str,
        labels: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> str:
        """Create (but don't start) a container and return its workload handle."""
        pass

    @abstractmethod
    async def start_container(
        self, container_id: str, timeout: float | None = None
    ) -> None:
        """Start a created container."""
        pass

    @abstractmethod
    async def stop_container(
        self, container_id: str, timeout: float | None = None
    ) -> None:
        """Stop a running container."""
        pass

    @abstractmethod
    async def remove_container(
        self, container_id: str, force: bool = False, timeout: float | None = None
    ) -> None:
        """Remove a container."""
        pass


class DockerRuntime(ContainerRuntime):
    """
    Drives the local Docker daemon through the docker CLI.

    Each operation runs one docker subprocess. When a deadline expires (or the
    awaiting task is cancelled) the subprocess is killed before the error
    propagates, so no docker command outlives its caller.
    """

    def __init__(self, docker_binary: str = "docker", stop_grace_period: int = 10):
        """
        Initialize the runtime client.

        Args:
            docker_binary: Path or name of the docker CLI executable
            stop_grace_period: Seconds docker waits before killing a stopping container
        """
        self.docker_binary = docker_binary
        self.stop_grace_period = stop_grace_period

    async def _exec(self, *args: str, timeout: float | None) -> tuple[int, str, str]:
        """
        Run a docker command and collect its output.

        Returns:
            Tuple of (returncode, stdout, stderr)

        Raises:
            TimeoutError: If the command does not finish within timeout seconds
        """
        process = await asyncio.create_subprocess_exec(
            self.docker_binary,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except (asyncio.TimeoutError, asyncio.CancelledError) as e:
            if process.returncode is None:
                process.kill()
                await process.wait()
            if isinstance(e, asyncio.TimeoutError):
                raise TimeoutError(
                    f"docker {args[0]} did not finish within {timeout}s"
                ) from e
            raise

        return process.returncode, stdout.decode(), stderr.decode()

    async def pull_image(self, image: str, timeout: float | None = None) -> None:
        """
        Pull an image from its registry.

        Args:
            image: Image reference, e.g. "nginx:latest"
            timeout: Deadline in seconds

        Raises:
            RuntimeError: If the pull fails
        """
        logger.info(f"Pulling image: {image}")
        returncode, _, stderr = await self._exec("pull", "--quiet", image, timeout=timeout)

        if returncode != 0:
            raise RuntimeError(f"Failed to pull image '{image}': {stderr.strip()}")

    async def create_container(
        self,
        image: str,
        labels: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> str:
        """
        Create a container from an image.

        Args:
            image: Image reference to create the container from
            labels: Docker labels attached to the container
            timeout: Deadline in seconds

        Returns:
            Docker container ID (the workload handle)

        Raises:
            RuntimeError: If container creation fails
        """
        args = ["create"]
        for key, value in (labels or {}).items():
            args.extend(["--label", f"{key}={value}"])
        args.append(image)

        returncode, stdout, stderr = await self._exec(*args, timeout=timeout)

        if returncode != 0:
            raise RuntimeError(
                f"Failed to create container using image '{image}': {stderr.strip()}"
            )

        container_id = stdout.strip()
        if not container_id:
            raise RuntimeError("docker create returned no container ID")
        return container_id

    async def start_container(
        self, container_id: str, timeout: float | None = None
    ) -> None:
        """
        Start a created container.

        Args:
            container_id: Docker container ID or name
            timeout: Deadline in seconds

        Raises:
            RuntimeError: If container start fails
        """
        returncode, _, stderr = await self._exec("start", container_id, timeout=timeout)

        if returncode != 0:
            raise RuntimeError(
                f"Failed to start container '{container_id}': {stderr.strip()}"
            )

    async def stop_container(
        self, container_id: str, timeout: float | None = None
    ) -> None:
        """
        Stop a running container.

        Args:
            container_id: Docker container ID or name
            timeout: Deadline in seconds

        Raises:
            RuntimeError: If stop operation fails
        """
        returncode, _, stderr = await self._exec(
            "stop", "--time", str(self.stop_grace_period), container_id, timeout=timeout
        )

        if returncode != 0:
            raise RuntimeError(
                f"Failed to stop container '{container_id}': {stderr.strip()}"
            )

    async def remove_container(
        self, container_id: str, force: bool = False, timeout: float | None = None
    ) -> None:
        """
        Remove a container.

        Args:
            container_id: Docker container ID or name
            force: If True, force removal even if running
            timeout: Deadline in seconds

        Raises:
            RuntimeError: If removal fails
        """
        args = ["rm"]
        if force:
            args.append("--force")
        args.append(container_id)

        returncode, _, stderr = await self._exec(*args, timeout=timeout)

        if returncode != 0:
            # Ignore "already removed" errors
            if "No such container" not in stderr:
                raise RuntimeError(
                    f"Failed to remove container '{container_id}': {stderr.strip()}"
                )
