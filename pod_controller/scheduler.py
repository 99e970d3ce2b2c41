"""
Round-robin scheduler that selects and reserves a node in one step.
"""

import logging
import threading

from pod_common.errors import NoCapacityAvailableError

from .node_registry import NodeRegistry

logger = logging.getLogger(__name__)


class RoundRobinScheduler:
    """
    Picks nodes in rotation, reserving capacity as part of the selection.

    The cursor is shared across calls and always moves: past the selected
    node on success, one step on failure. Selection and reservation happen
    under the scheduler lock, so no caller ever sees a node that has been
    selected but not yet reserved.
    """

    def __init__(self, node_registry: NodeRegistry):
        self.node_registry = node_registry
        self._cursor = 0
        self._lock = threading.Lock()

    def select_node(self) -> str:
        """
        Choose a node and reserve one capacity unit on it.

        Returns:
            Name of the node holding the new reservation

        Raises:
            NoCapacityAvailableError: If no node had a free unit (nothing reserved)
        """
        with self._lock:
            names = self.node_registry.names()
            if not names:
                raise NoCapacityAvailableError("No nodes are registered")

            start = self._cursor % len(names)
            for offset in range(len(names)):
                index = (start + offset) % len(names)
                if self.node_registry.reserve(names[index]):
                    self._cursor = index + 1
                    logger.debug(f"Selected node {names[index]}")
                    return names[index]

            self._cursor = start + 1

        logger.warning(f"All {len(names)} nodes are full, cannot schedule pod")
        raise NoCapacityAvailableError("All nodes are full, cannot schedule pod")
