"""
Node registry with per-node capacity accounting.

Every node carries its own lock, so reserve/release on a single node are
linearizable while operations on different nodes never contend. Critical
sections only touch counters; no lock is ever held across runtime I/O.
"""

import logging
import threading
from dataclasses import replace

from pod_common.models import Node

logger = logging.getLogger(__name__)


def parse_node_list(value: str) -> list[Node]:
    """
    Parse a node list of the form "name:capacity,name:capacity".

    Args:
        value: Comma-separated node definitions, e.g. "node1:2,node2:4"

    Returns:
        List of Node objects with used=0

    Raises:
        ValueError: If an entry is malformed, a capacity is not a positive
                    integer, or a name repeats
    """
    nodes: list[Node] = []
    seen: set[str] = set()

    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue

        name, sep, capacity_str = entry.partition(":")
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"Invalid node definition '{entry}' (expected name:capacity)")

        try:
            capacity = int(capacity_str)
        except ValueError:
            raise ValueError(f"Invalid capacity for node '{name}': {capacity_str!r}") from None

        if capacity < 1:
            raise ValueError(f"Capacity for node '{name}' must be >= 1, got {capacity}")
        if name in seen:
            raise ValueError(f"Duplicate node name '{name}'")

        seen.add(name)
        nodes.append(Node(name=name, capacity=capacity))

    if not nodes:
        raise ValueError("At least one node must be configured")
    return nodes


class _NodeSlot:
    """A node and the lock protecting its counters."""

    def __init__(self, node: Node):
        self.node = node
        self.lock = threading.Lock()


class NodeRegistry:
    """
    Holds the set of nodes and their capacity/usage counters.

    Nodes keep their registration order, which is the rotation order used
    by the scheduler.
    """

    def __init__(self, nodes: list[Node] | None = None):
        self._slots: dict[str, _NodeSlot] = {}
        self._membership_lock = threading.Lock()
        for node in nodes or []:
            self.add_node(node.name, node.capacity)

    def add_node(self, name: str, capacity: int) -> Node:
        """
        Register a new node with no pods bound to it.

        Raises:
            ValueError: If the name is empty or taken, or capacity < 1
        """
        if not name:
            raise ValueError("Node name must not be empty")
        if capacity < 1:
            raise ValueError(f"Capacity for node '{name}' must be >= 1, got {capacity}")

        with self._membership_lock:
            if name in self._slots:
                raise ValueError(f"Node '{name}' already exists")
            node = Node(name=name, capacity=capacity)
            # Copy-on-write so readers iterate a stable mapping without the lock
            slots = dict(self._slots)
            slots[name] = _NodeSlot(node)
            self._slots = slots

        logger.info(f"Registered node {name} (capacity={capacity})")
        return replace(node)

    def names(self) -> list[str]:
        return list(self._slots)

    def _slot(self, name: str) -> _NodeSlot:
        slot = self._slots.get(name)
        if slot is None:
            raise KeyError(f"Unknown node '{name}'")
        return slot

    def reserve(self, name: str) -> bool:
        """
        Atomically take one capacity unit on a node.

        Returns:
            True if a unit was reserved, False if the node is full (no side effect)

        Raises:
            KeyError: If the node is unknown
        """
        slot = self._slot(name)
        with slot.lock:
            node = slot.node
            if node.used >= node.capacity:
                return False
            node.used += 1
            used, capacity = node.used, node.capacity

        logger.debug(f"Reserved capacity on {name} (used: {used}/{capacity})")
        return True

    def release(self, name: str) -> None:
        """
        Atomically return one capacity unit to a node, floored at zero.

        Callers must release exactly once per successful reservation.

        Raises:
            KeyError: If the node is unknown
        """
        slot = self._slot(name)
        with slot.lock:
            node = slot.node
            if node.used == 0:
                logger.warning(f"Release on node {name} with no reservations held")
                return
            node.used -= 1
            used, capacity = node.used, node.capacity

        logger.debug(f"Released capacity on {name} (used: {used}/{capacity})")

    def get(self, name: str) -> Node:
        """Return a copy of a single node."""
        slot = self._slot(name)
        with slot.lock:
            return replace(slot.node)

    def snapshot(self) -> list[Node]:
        """
        Return copies of all nodes in registration order.

        Each node is read under its own lock; the sequence as a whole is not
        a consistent cut across nodes.
        """
        nodes = []
        for slot in list(self._slots.values()):
            with slot.lock:
                nodes.append(replace(slot.node))
        return nodes
