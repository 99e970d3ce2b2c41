"""
Standalone entrypoint for running the orchestrator API server.

Usage:
    python -m pod_server [OPTIONS]
    pod-server [OPTIONS]  (after pip install)

Environment Variables:
    ORCH_NODES: Comma-separated name:capacity pairs (default: node1:2,node2:2,node3:2)
    ORCH_PULL_TIMEOUT: Seconds allowed for an image pull (default: 300)
    ORCH_RUNTIME_TIMEOUT: Seconds allowed for other runtime calls (default: 30)
    ORCH_CONTAINER_LABEL_PREFIX: Label prefix for created containers (default: orchestrator)
"""

import argparse
import logging
import os
import sys

import uvicorn

from pod_controller.node_registry import parse_node_list

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Pod orchestrator API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  ORCH_NODES                    Node list as name:capacity pairs
  ORCH_PULL_TIMEOUT             Seconds allowed for an image pull (default: 300)
  ORCH_RUNTIME_TIMEOUT          Seconds allowed for other runtime calls (default: 30)
  ORCH_CONTAINER_LABEL_PREFIX   Label prefix for created containers

Note: Command-line arguments override environment variables.

Examples:
  # Run with the default three nodes of capacity 2
  pod-server

  # Two nodes with different capacities on another port
  pod-server --nodes big:8,small:2 --port 9000
        """,
    )

    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8080, help="Port (default: 8080)")
    parser.add_argument(
        "--nodes",
        default=None,
        help="Node list as name:capacity pairs (default: ORCH_NODES env or node1:2,node2:2,node3:2)",
    )
    parser.add_argument(
        "--pull-timeout",
        type=float,
        default=None,
        help="Seconds allowed for an image pull (default: ORCH_PULL_TIMEOUT env or 300)",
    )
    parser.add_argument(
        "--runtime-timeout",
        type=float,
        default=None,
        help="Seconds allowed for create/start/stop/remove (default: ORCH_RUNTIME_TIMEOUT env or 30)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )

    return parser.parse_args(argv)


def apply_overrides(args: argparse.Namespace) -> None:
    """
    Export command-line overrides as environment variables for the app.

    Raises:
        ValueError: If --nodes is malformed
    """
    if args.nodes is not None:
        parse_node_list(args.nodes)
        os.environ["ORCH_NODES"] = args.nodes
    if args.pull_timeout is not None:
        os.environ["ORCH_PULL_TIMEOUT"] = str(args.pull_timeout)
    if args.runtime_timeout is not None:
        os.environ["ORCH_RUNTIME_TIMEOUT"] = str(args.runtime_timeout)


def main(argv: list[str] | None = None) -> int:
    """
    Main entrypoint for the server.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        apply_overrides(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    logger.info(f"Starting API server on {args.host}:{args.port}")
    try:
        uvicorn.run(
            "pod_server.app:app",
            host=args.host,
            port=args.port,
            log_level=args.log_level.lower(),
        )
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
