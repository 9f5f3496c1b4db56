"""
Binding reconciliation for expression nodes.

After an edit the node's free variables are recomputed from the new tree and
compared with the previous binding set. The old->new slot mapping is derived
once from immutable snapshots, and only then turned into wire commands, so a
slot that is vacated and re-filled during the same edit (``a+b`` -> ``b+a``)
can never pick up the wrong wire.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..expr.ast import Expr
from .ports import OutPinId, binding_slot
from .store import NodeConnections

logger = logging.getLogger(__name__)

DEFAULT_VALUE = 0.0

RemotesQuery = Callable[[int], Sequence[OutPinId]]


@dataclass(frozen=True)
class DropInputs:
    slot: int

    def apply(self, connections: NodeConnections) -> None:
        connections.drop_inputs(self.slot)


@dataclass(frozen=True)
class Disconnect:
    remote: OutPinId
    slot: int

    def apply(self, connections: NodeConnections) -> None:
        connections.disconnect(self.remote, self.slot)


@dataclass(frozen=True)
class Connect:
    remote: OutPinId
    slot: int

    def apply(self, connections: NodeConnections) -> None:
        connections.connect(self.remote, self.slot)


MigrationCommand = Union[DropInputs, Disconnect, Connect]


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of reconciling a freshly parsed tree against the old bindings."""

    bindings: Tuple[str, ...]
    values: Tuple[float, ...]
    slot_map: Mapping[str, Optional[int]] = field(default_factory=dict)
    commands: Tuple[MigrationCommand, ...] = ()

    @property
    def removed(self) -> List[str]:
        return [name for name, index in self.slot_map.items() if index is None]

    @property
    def added(self) -> List[str]:
        return [name for name in self.bindings if name not in self.slot_map]

    def moved(self, old_bindings: Sequence[str]) -> Dict[str, Tuple[int, int]]:
        """Surviving names whose slot changed, as ``name -> (old_slot, new_slot)``."""
        result: Dict[str, Tuple[int, int]] = {}
        for old_index, name in enumerate(old_bindings):
            new_index = self.slot_map.get(name)
            if new_index is not None and new_index != old_index:
                result[name] = (binding_slot(old_index), binding_slot(new_index))
        return result

    def apply(self, connections: NodeConnections) -> None:
        for command in self.commands:
            command.apply(connections)


def collect_bindings(expr: Expr) -> Tuple[str, ...]:
    """Variable names in first-occurrence order; repeated names share one slot."""
    return tuple(dict.fromkeys(expr.variables()))


def reconcile(
    expr: Expr,
    old_bindings: Sequence[str],
    old_values: Sequence[float],
    remotes_of: Optional[RemotesQuery] = None,
) -> Reconciliation:
    """
    Compute the new binding set for ``expr`` and the wire commands migrating
    the node from ``old_bindings``.

    ``remotes_of(slot)`` reports the output pins currently wired into an input
    slot of the node; it is only read, never used to mutate anything. Without
    it no wires are known and only slot drops are planned.
    """
    new_bindings = collect_bindings(expr)
    old_lookup = dict(zip(old_bindings, old_values))
    new_values = tuple(float(old_lookup.get(name, DEFAULT_VALUE)) for name in new_bindings)

    new_index = {name: index for index, name in enumerate(new_bindings)}
    slot_map: Dict[str, Optional[int]] = {
        name: new_index.get(name) for name in old_bindings
    }

    drops: List[MigrationCommand] = []
    disconnects: List[MigrationCommand] = []
    connects: List[MigrationCommand] = []
    for old_index, name in enumerate(old_bindings):
        target = slot_map[name]
        old_slot = binding_slot(old_index)
        if target is None:
            drops.append(DropInputs(old_slot))
            continue
        if target == old_index:
            continue
        new_slot = binding_slot(target)
        remotes = list(remotes_of(old_slot)) if remotes_of is not None else []
        for remote in remotes:
            disconnects.append(Disconnect(remote, old_slot))
            connects.append(Connect(remote, new_slot))

    commands = tuple(drops + disconnects + connects)
    if commands:
        logger.debug(
            f"Reconciled {list(old_bindings)} -> {list(new_bindings)} "
            f"with {len(commands)} wire command(s)"
        )
    return Reconciliation(
        bindings=new_bindings,
        values=new_values,
        slot_map=slot_map,
        commands=commands,
    )


__all__ = [
    "DEFAULT_VALUE",
    "Connect",
    "Disconnect",
    "DropInputs",
    "MigrationCommand",
    "Reconciliation",
    "collect_bindings",
    "reconcile",
]
