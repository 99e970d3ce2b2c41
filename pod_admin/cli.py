"""
Admin CLI for operating the pod orchestrator.

Provides commands for managing nodes and for reconciling pods whose
container could not be cleaned up (Failed pods still holding capacity).
"""

import json
import os
import sys

import click

from pod_client.client import add_node, delete_pod, list_nodes, list_pods


def get_server_url() -> str:
    """Get the orchestrator URL from environment variable or default."""
    return os.environ.get("ORCH_SERVER_URL", "http://localhost:8080")


@click.group()
def cli():
    """Pod Admin - Manage nodes and reconcile failed pods."""
    pass


@cli.group()
def node():
    """Manage nodes."""
    pass


@cli.group()
def pod():
    """Inspect and reconcile pods."""
    pass


# ============================================================================
# Node Commands
# ============================================================================


@node.command("add")
@click.option("--name", required=True, help="Node name (must be unique)")
@click.option("--capacity", required=True, type=int, help="Maximum concurrent pods")
def node_add(name: str, capacity: int):
    """Register a new node."""
    if capacity < 1:
        click.echo(f"Error: Capacity must be at least 1, got {capacity}", err=True)
        sys.exit(1)

    try:
        node_obj = add_node(name, capacity, server_url=get_server_url())
    except RuntimeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo("✓ Node registered successfully")
    click.echo(f"  Name:     {node_obj['name']}")
    click.echo(f"  Capacity: {node_obj['capacity']}")


@node.command("list")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def node_list(json_output: bool):
    """List nodes with usage and leaked reservations."""
    try:
        nodes = list_nodes(server_url=get_server_url())
        pods = list_pods(server_url=get_server_url())
    except RuntimeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    held_by_failed: dict[str, int] = {}
    for p in pods:
        if p["state"] == "Failed" and p.get("node_name"):
            held_by_failed[p["node_name"]] = held_by_failed.get(p["node_name"], 0) + 1

    if json_output:
        nodes_data = [
            {**n, "held_by_failed": held_by_failed.get(n["name"], 0)} for n in nodes
        ]
        click.echo(json.dumps(nodes_data, indent=2))
        return

    if not nodes:
        click.echo("No nodes registered.")
        return

    click.echo(f"\n{'Name':<20} {'Used':>6} {'Capacity':>9} {'Failed':>7}")
    click.echo("-" * 45)
    for n in nodes:
        click.echo(
            f"{n['name']:<20} {n['used']:>6} {n['capacity']:>9} "
            f"{held_by_failed.get(n['name'], 0):>7}"
        )
    click.echo()


# ============================================================================
# Pod Commands
# ============================================================================


@pod.command("failed")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def pod_failed(json_output: bool):
    """List Failed pods whose node capacity is still held."""
    try:
        pods = list_pods(server_url=get_server_url())
    except RuntimeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    failed = [p for p in pods if p["state"] == "Failed"]

    if json_output:
        click.echo(json.dumps(failed, indent=2))
        return

    if not failed:
        click.echo("No failed pods.")
        return

    click.echo(f"\n{'ID':<14} {'Name':<20} {'Node':<12} {'Reason'}")
    click.echo("-" * 100)
    for p in failed:
        click.echo(
            f"{p['id'][:12]:<14} {p['name'][:20]:<20} {p.get('node_name') or '-':<12} "
            f"{p.get('failure_reason') or ''}"
        )
    click.echo("\nRun 'pod-admin pod retry-delete ID' once the container can be removed.\n")


@pod.command("retry-delete")
@click.argument("pod_id")
def pod_retry_delete(pod_id: str):
    """Re-attempt stop/remove of a pod and release its capacity."""
    try:
        pod_obj = delete_pod(pod_id, server_url=get_server_url())
    except RuntimeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Pod deleted: {pod_obj['id']} (released capacity on {pod_obj['node_name']})")


if __name__ == "__main__":
    cli()
