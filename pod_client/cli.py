import argparse
import json
import os
import sys
from datetime import datetime

from .client import create_pod, delete_pod, get_pod, list_nodes, list_pods


def get_server_url() -> str:
    """
    Get the orchestrator URL from environment variable or use default.

    Returns:
        Server URL string

    Environment variables:
    - ORCH_SERVER_URL: Custom server URL (useful for testing with different ports)
    """
    return os.environ.get("ORCH_SERVER_URL", "http://localhost:8080")


def main():
    """Main entry point for the podctl CLI."""
    parser = argparse.ArgumentParser(description="Pod orchestrator CLI")
    subparsers = parser.add_subparsers(dest="command")

    # podctl create NAME --image IMAGE
    create_parser = subparsers.add_parser("create", help="Create a pod")
    create_parser.add_argument("name", help="Pod name")
    create_parser.add_argument("--image", required=True, help="Container image")
    create_parser.add_argument(
        "--json", dest="json_mode", action="store_true", help="Output in JSON format"
    )

    # podctl list [--json]
    list_parser = subparsers.add_parser("list", help="List all pods")
    list_parser.add_argument(
        "--json", dest="json_mode", action="store_true", help="Output in JSON format"
    )

    # podctl get ID
    get_parser = subparsers.add_parser("get", help="Show a single pod")
    get_parser.add_argument("pod_id", help="Pod ID")

    # podctl delete ID
    delete_parser = subparsers.add_parser("delete", help="Delete a pod")
    delete_parser.add_argument("pod_id", help="Pod ID")

    # podctl nodes [--json]
    nodes_parser = subparsers.add_parser("nodes", help="List nodes and their usage")
    nodes_parser.add_argument(
        "--json", dest="json_mode", action="store_true", help="Output in JSON format"
    )

    args = parser.parse_args()
    server_url = get_server_url()

    try:
        if args.command == "create":
            pod = create_pod(args.image, name=args.name, server_url=server_url)
            if args.json_mode:
                print(json.dumps(pod, indent=2))
            else:
                print(f"Pod created: {pod['id']} (node: {pod['node_name']})")
            sys.exit(0)

        elif args.command == "list":
            pods = list_pods(server_url=server_url)
            if args.json_mode:
                print(json.dumps(pods, indent=2))
                sys.exit(0)

            if not pods:
                print("No pods found.")
                sys.exit(0)

            print(
                f"{'POD ID':<14} {'NAME':<20} {'IMAGE':<28} {'STATE':<10} {'NODE':<12} {'CREATED':<20}"
            )
            print("-" * 108)
            for pod in pods:
                print(
                    f"{pod['id'][:12]:<14} {pod['name'][:20]:<20} {pod['image'][:28]:<28} "
                    f"{pod['state']:<10} {pod.get('node_name') or '-':<12} "
                    f"{format_time(pod.get('created_at')):<20}"
                )
            sys.exit(0)

        elif args.command == "get":
            print(json.dumps(get_pod(args.pod_id, server_url=server_url), indent=2))
            sys.exit(0)

        elif args.command == "delete":
            pod = delete_pod(args.pod_id, server_url=server_url)
            print(f"Pod deleted: {pod['id']}")
            sys.exit(0)

        elif args.command == "nodes":
            nodes = list_nodes(server_url=server_url)
            if args.json_mode:
                print(json.dumps(nodes, indent=2))
                sys.exit(0)

            print(f"{'NODE':<20} {'USED':>6} {'CAPACITY':>9}")
            print("-" * 37)
            for node in nodes:
                print(f"{node['name']:<20} {node['used']:>6} {node['capacity']:>9}")
            sys.exit(0)

    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    parser.print_help()
    sys.exit(1)


def format_time(time_str: str | None) -> str:
    """Format ISO timestamp to human-readable format."""
    if not time_str:
        return "N/A"
    try:
        dt = datetime.fromisoformat(time_str.replace("Z", "+00:00"))
        return dt.strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, AttributeError):
        return time_str


if __name__ == "__main__":
    main()
