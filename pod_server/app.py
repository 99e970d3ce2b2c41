import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pod_common.errors import (
    ContainerCreateError,
    ContainerStartError,
    ImagePullError,
    InvalidSpecError,
    NoCapacityAvailableError,
    OrchestratorError,
    PodDeleteError,
    PodNotFoundError,
)
from pod_common.models import Node, PodSpec
from pod_controller.container_runtime import DockerRuntime
from pod_controller.lifecycle import PodLifecycleManager
from pod_controller.node_registry import parse_node_list

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_NODES = "node1:2,node2:2,node3:2"

# HTTP status for each error the lifecycle manager can raise
ERROR_STATUS_CODES: dict[type[OrchestratorError], int] = {
    InvalidSpecError: 400,
    NoCapacityAvailableError: 500,
    ImagePullError: 502,
    ContainerCreateError: 502,
    ContainerStartError: 502,
    PodNotFoundError: 404,
    PodDeleteError: 500,
}

# Lifecycle manager (initialized at startup)
manager: PodLifecycleManager | None = None


def get_nodes() -> list[Node]:
    """
    Get the initial node set from environment or use default.

    Returns:
        List of nodes to schedule onto

    Environment variables:
    - ORCH_NODES: Comma-separated "name:capacity" pairs (default: node1:2,node2:2,node3:2)
    """
    value = os.environ.get("ORCH_NODES", DEFAULT_NODES)
    try:
        return parse_node_list(value)
    except ValueError as e:
        logger.warning(f"Invalid ORCH_NODES={value!r} ({e}), using default {DEFAULT_NODES}")
        return parse_node_list(DEFAULT_NODES)


def _get_timeout(var: str, default: float) -> float:
    try:
        timeout = float(os.environ.get(var, str(default)))
    except ValueError:
        logger.warning(f"Invalid {var}={os.environ.get(var)}, using default {default}")
        return default
    if timeout <= 0:
        logger.warning(f"Invalid {var}={timeout}, using default {default}")
        return default
    return timeout


def get_pull_timeout() -> float:
    """Seconds allowed for an image pull (ORCH_PULL_TIMEOUT, default 300)."""
    return _get_timeout("ORCH_PULL_TIMEOUT", 300.0)


def get_runtime_timeout() -> float:
    """Seconds allowed for create/start/stop/remove (ORCH_RUNTIME_TIMEOUT, default 30)."""
    return _get_timeout("ORCH_RUNTIME_TIMEOUT", 30.0)


def get_label_prefix() -> str:
    """Label prefix for created containers (ORCH_CONTAINER_LABEL_PREFIX)."""
    return os.environ.get("ORCH_CONTAINER_LABEL_PREFIX", "orchestrator")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI app.

    Builds the lifecycle manager (and with it the node and pod registries)
    at startup. All state is process-lifetime only and is dropped at shutdown.
    """
    global manager

    nodes = get_nodes()
    manager = PodLifecycleManager(
        runtime=DockerRuntime(),
        nodes=nodes,
        pull_timeout=get_pull_timeout(),
        operation_timeout=get_runtime_timeout(),
        label_prefix=get_label_prefix(),
    )
    logger.info(
        "Orchestrator started with nodes: "
        + ", ".join(f"{node.name}({node.capacity})" for node in nodes)
    )

    yield

    manager = None
    logger.info("Orchestrator stopped")


app = FastAPI(lifespan=lifespan)


def get_manager() -> PodLifecycleManager:
    """
    Get the lifecycle manager instance.

    Raises:
        RuntimeError: If the manager is not initialized
    """
    if manager is None:
        raise RuntimeError("Lifecycle manager not initialized")
    return manager


class CreatePodRequest(BaseModel):
    name: str | None = None
    image: str | None = None


class AddNodeRequest(BaseModel):
    name: str
    capacity: int


@app.exception_handler(OrchestratorError)
async def orchestrator_error_handler(
    request: Request, exc: OrchestratorError
) -> JSONResponse:
    """Render typed orchestrator errors with their mapped status code."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Reject malformed request bodies as InvalidSpec instead of 422."""
    causes = [error.get("msg", "") for error in exc.errors()]
    error = InvalidSpecError("Invalid request body", [ValueError(c) for c in causes])
    return JSONResponse(status_code=400, content=error.to_dict())


@app.post("/pods", status_code=201)
@app.post("/createPod", status_code=201, include_in_schema=False)
async def create_pod(
    body: CreatePodRequest,
    mgr: PodLifecycleManager = Depends(get_manager),
) -> dict[str, Any]:
    """
    Schedule a pod onto a node and start its container.

    Returns:
        The running pod, including the node it is bound to
    """
    pod = await mgr.create(PodSpec(image=body.image or "", name=body.name or ""))
    return pod.to_dict()


@app.get("/pods")
@app.get("/listPods", include_in_schema=False)
async def list_pods(
    mgr: PodLifecycleManager = Depends(get_manager),
) -> list[dict[str, Any]]:
    """List all pods with their state and node binding."""
    pods = await mgr.list_pods()
    return [pod.to_dict() for pod in pods]


@app.get("/pods/{pod_id}")
async def get_pod(
    pod_id: str,
    mgr: PodLifecycleManager = Depends(get_manager),
) -> dict[str, Any]:
    pod = await mgr.get_pod(pod_id)
    return pod.to_dict()


@app.delete("/pods/{pod_id}")
async def delete_pod(
    pod_id: str,
    mgr: PodLifecycleManager = Depends(get_manager),
) -> dict[str, Any]:
    """
    Stop and remove a pod's container and release its node capacity.

    A pod whose delete failed earlier (state Failed) can be deleted again;
    this re-attempts stop/remove against the same container.
    """
    pod = await mgr.delete(pod_id)
    return pod.to_dict()


@app.get("/nodes")
async def list_nodes(
    mgr: PodLifecycleManager = Depends(get_manager),
) -> list[dict[str, Any]]:
    """List nodes with their capacity and current usage."""
    return [node.to_dict() for node in mgr.list_nodes()]


@app.post("/nodes", status_code=201)
async def add_node(
    body: AddNodeRequest,
    mgr: PodLifecycleManager = Depends(get_manager),
) -> dict[str, Any]:
    """
    Register an additional node.

    Raises:
        HTTPException: 400 if the name is taken or capacity is below 1
    """
    try:
        node = mgr.add_node(body.name, body.capacity)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return node.to_dict()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Dictionary with status="ok" if server is running
    """
    return {"status": "ok"}
