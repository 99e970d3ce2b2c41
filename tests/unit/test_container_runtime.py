"""
Unit tests for DockerRuntime.

These tests replace the docker subprocess with mocks, so they check the
command lines issued and the error/timeout handling without a Docker daemon.
"""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest

from pod_controller.container_runtime import DockerRuntime


def make_process(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b""):
    """Create a mock asyncio subprocess."""
    process = Mock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.wait = AsyncMock()
    return process


class TestDockerRuntime:
    """Test suite for DockerRuntime class."""

    @pytest.fixture
    def runtime(self):
        return DockerRuntime(stop_grace_period=5)

    @pytest.mark.asyncio
    async def test_pull_image(self, runtime):
        """Test that pull issues docker pull for the image."""
        process = make_process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as exec_mock:
            await runtime.pull_image("nginx:latest", timeout=60)

        args = exec_mock.call_args[0]
        assert args == ("docker", "pull", "--quiet", "nginx:latest")

    @pytest.mark.asyncio
    async def test_pull_image_failure(self, runtime):
        """Test that a non-zero exit raises RuntimeError with docker's message."""
        process = make_process(returncode=1, stderr=b"manifest unknown\n")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(RuntimeError, match="manifest unknown"):
                await runtime.pull_image("missing:tag")

    @pytest.mark.asyncio
    async def test_create_container_returns_id(self, runtime):
        """Test that create returns the container id printed by docker."""
        process = make_process(stdout=b"4f1c2d3e\n")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as exec_mock:
            container_id = await runtime.create_container(
                "nginx", labels={"orchestrator.node": "node1"}
            )

        assert container_id == "4f1c2d3e"
        args = exec_mock.call_args[0]
        assert args == ("docker", "create", "--label", "orchestrator.node=node1", "nginx")

    @pytest.mark.asyncio
    async def test_create_container_failure(self, runtime):
        process = make_process(returncode=125, stderr=b"no such image")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(RuntimeError, match="no such image"):
                await runtime.create_container("nginx")

    @pytest.mark.asyncio
    async def test_start_stop_commands(self, runtime):
        """Test the docker start and stop command lines."""
        process = make_process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as exec_mock:
            await runtime.start_container("abc")
            await runtime.stop_container("abc")

        assert exec_mock.call_args_list[0][0] == ("docker", "start", "abc")
        assert exec_mock.call_args_list[1][0] == ("docker", "stop", "--time", "5", "abc")

    @pytest.mark.asyncio
    async def test_stop_failure(self, runtime):
        process = make_process(returncode=1, stderr=b"cannot stop")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(RuntimeError, match="cannot stop"):
                await runtime.stop_container("abc")

    @pytest.mark.asyncio
    async def test_remove_force(self, runtime):
        """Test that force adds --force to docker rm."""
        process = make_process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as exec_mock:
            await runtime.remove_container("abc", force=True)

        assert exec_mock.call_args[0] == ("docker", "rm", "--force", "abc")

    @pytest.mark.asyncio
    async def test_remove_already_gone_is_success(self, runtime):
        """Test that removing a missing container is not an error."""
        process = make_process(returncode=1, stderr=b"Error: No such container: abc")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            await runtime.remove_container("abc")

    @pytest.mark.asyncio
    async def test_remove_failure(self, runtime):
        process = make_process(returncode=1, stderr=b"device or resource busy")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(RuntimeError, match="device or resource busy"):
                await runtime.remove_container("abc")

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, runtime):
        """Test that a deadline overrun kills docker and raises TimeoutError."""
        process = make_process()
        process.returncode = None

        async def hang():
            await asyncio.sleep(10)

        process.communicate = AsyncMock(side_effect=hang)

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(TimeoutError, match="docker pull"):
                await runtime.pull_image("huge:latest", timeout=0.01)

        process.kill.assert_called_once()
        process.wait.assert_awaited_once()
