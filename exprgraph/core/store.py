"""
In-memory wire store and the node-scoped view the expression node talks to.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Tuple

from .ports import InPinId, OutPinId

logger = logging.getLogger(__name__)

Wire = Tuple[OutPinId, InPinId]


class ConnectionStore:
    """
    Set of wires between output and input pins.

    Every command takes effect immediately and is a no-op when the store is
    already in the requested state. Wires keep insertion order so queries are
    deterministic.
    """

    def __init__(self) -> None:
        self._wires: Dict[Wire, None] = {}

    def __len__(self) -> int:
        return len(self._wires)

    def __contains__(self, wire: object) -> bool:
        return wire in self._wires

    def __iter__(self) -> Iterator[Wire]:
        return iter(list(self._wires))

    def wires(self) -> List[Wire]:
        return list(self._wires)

    def remotes(self, in_pin: InPinId) -> List[OutPinId]:
        """Output pins currently wired into ``in_pin``."""
        return [src for src, dst in self._wires if dst == in_pin]

    def outputs(self, out_pin: OutPinId) -> List[InPinId]:
        """Input pins currently fed by ``out_pin``."""
        return [dst for src, dst in self._wires if src == out_pin]

    def connect(self, out_pin: OutPinId, in_pin: InPinId) -> bool:
        if (out_pin, in_pin) in self._wires:
            return False
        self._wires[(out_pin, in_pin)] = None
        logger.debug(f"Connected {out_pin} -> {in_pin}")
        return True

    def disconnect(self, out_pin: OutPinId, in_pin: InPinId) -> bool:
        if (out_pin, in_pin) not in self._wires:
            return False
        del self._wires[(out_pin, in_pin)]
        logger.debug(f"Disconnected {out_pin} -> {in_pin}")
        return True

    def drop_inputs(self, in_pin: InPinId) -> int:
        """Remove every wire feeding ``in_pin``; returns how many were removed."""
        dropped = [wire for wire in self._wires if wire[1] == in_pin]
        for wire in dropped:
            del self._wires[wire]
        if dropped:
            logger.debug(f"Dropped {len(dropped)} wire(s) into {in_pin}")
        return len(dropped)

    def drop_node(self, node: int) -> int:
        """Remove every wire touching ``node`` on either end."""
        dropped = [
            wire for wire in self._wires if wire[0].node == node or wire[1].node == node
        ]
        for wire in dropped:
            del self._wires[wire]
        return len(dropped)

    def view(self, node: int) -> "NodeConnections":
        return NodeConnections(self, node)


class NodeConnections:
    """Slot-relative access to the wires feeding one node's inputs."""

    def __init__(self, store: ConnectionStore, node: int):
        self.store = store
        self.node = node

    def _pin(self, slot: int) -> InPinId:
        return InPinId(node=self.node, input=slot)

    def remotes(self, slot: int) -> List[OutPinId]:
        return self.store.remotes(self._pin(slot))

    def connect(self, remote: OutPinId, slot: int) -> None:
        self.store.connect(remote, self._pin(slot))

    def disconnect(self, remote: OutPinId, slot: int) -> None:
        self.store.disconnect(remote, self._pin(slot))

    def drop_inputs(self, slot: int) -> None:
        self.store.drop_inputs(self._pin(slot))


__all__ = [
    "ConnectionStore",
    "NodeConnections",
    "Wire",
]
