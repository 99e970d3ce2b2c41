"""
Pod Controller module.

This module contains the orchestration core: node capacity accounting, the
round-robin scheduler, the container runtime client and the lifecycle manager
that sequences them so that recorded pod state never diverges from the
runtime's actual state.
"""

from .container_runtime import ContainerRuntime, DockerRuntime
from .lifecycle import PodLifecycleManager
from .node_registry import NodeRegistry, parse_node_list
from .scheduler import RoundRobinScheduler

__all__ = [
    "ContainerRuntime",
    "DockerRuntime",
    "NodeRegistry",
    "PodLifecycleManager",
    "RoundRobinScheduler",
    "parse_node_list",
]
