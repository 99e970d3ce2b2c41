from typing import Any

import requests

DEFAULT_SERVER_URL = "http://localhost:8080"


def _error_message(response: requests.Response) -> str:
    """Extract the server's error code and detail from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text.strip()}"

    if isinstance(body, dict) and "error" in body:
        message = f"{body['error']}: {body.get('detail', '')}"
        causes = body.get("causes") or []
        if causes:
            message += f" ({'; '.join(causes)})"
        if body.get("reservation_leaked"):
            message += " [reservation leaked: operator action required]"
        return message
    if isinstance(body, dict) and "detail" in body:
        return f"HTTP {response.status_code}: {body['detail']}"
    return f"HTTP {response.status_code}"


def _request(method: str, url: str, timeout: float, **kwargs: Any) -> Any:
    try:
        response = requests.request(method, url, timeout=timeout, **kwargs)
    except requests.exceptions.RequestException as e:
        raise RuntimeError(f"Error contacting orchestrator: {e}") from e

    if not response.ok:
        raise RuntimeError(_error_message(response))
    return response.json()


def create_pod(
    image: str, name: str = "", server_url: str = DEFAULT_SERVER_URL
) -> dict[str, Any]:
    """
    Create a pod and wait until its container is running.

    Args:
        image: Container image reference
        name: Display name for the pod (not required to be unique)
        server_url: Base URL of the orchestrator

    Returns:
        dict: The created pod, including its id and node_name

    Raises:
        RuntimeError: If the request fails or the orchestrator rejects it

    Image pulls can take minutes, so this call uses a long timeout.
    """
    return _request(
        "POST",
        f"{server_url}/pods",
        timeout=600,
        json={"name": name, "image": image},
    )


def list_pods(server_url: str = DEFAULT_SERVER_URL) -> list[dict[str, Any]]:
    """List all pods known to the orchestrator."""
    return _request("GET", f"{server_url}/pods", timeout=30)


def get_pod(pod_id: str, server_url: str = DEFAULT_SERVER_URL) -> dict[str, Any]:
    """Fetch a single pod by id."""
    return _request("GET", f"{server_url}/pods/{pod_id}", timeout=30)


def delete_pod(pod_id: str, server_url: str = DEFAULT_SERVER_URL) -> dict[str, Any]:
    """
    Delete a pod, stopping and removing its container.

    Returns:
        dict: The deleted pod (state "Deleted")

    Raises:
        RuntimeError: If the pod does not exist or its container could not be removed
    """
    return _request("DELETE", f"{server_url}/pods/{pod_id}", timeout=120)


def list_nodes(server_url: str = DEFAULT_SERVER_URL) -> list[dict[str, Any]]:
    """List nodes with their capacity and usage."""
    return _request("GET", f"{server_url}/nodes", timeout=30)


def add_node(
    name: str, capacity: int, server_url: str = DEFAULT_SERVER_URL
) -> dict[str, Any]:
    """Register an additional node with the orchestrator."""
    return _request(
        "POST",
        f"{server_url}/nodes",
        timeout=30,
        json={"name": name, "capacity": capacity},
    )
