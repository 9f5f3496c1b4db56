"""
Pin identities and pin kinds shared by nodes, the wire store and the graph.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping


# Input slot 0 of an expression node carries its source text.
TEXT_SLOT = 0


class PinKind(Enum):
    """Type of value travelling over a wire."""

    NUMBER = "number"
    TEXT = "text"
    ANY = "any"

    def accepts(self, other: "PinKind") -> bool:
        return self is PinKind.ANY or other is PinKind.ANY or self is other


@dataclass(frozen=True, order=True)
class OutPinId:
    """Output pin ``output`` of node ``node``."""

    node: int
    output: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"node": self.node, "output": self.output}


@dataclass(frozen=True, order=True)
class InPinId:
    """Input pin ``input`` of node ``node``."""

    node: int
    input: int

    def to_dict(self) -> Dict[str, int]:
        return {"node": self.node, "input": self.input}


def binding_slot(index: int) -> int:
    """Input slot feeding ``bindings[index]``."""
    return index + 1


def binding_index(slot: int) -> int:
    return slot - 1


def decode_out_pin(value: Mapping[str, Any]) -> OutPinId:
    return OutPinId(node=int(value["node"]), output=int(value.get("output", 0)))


def decode_in_pin(value: Mapping[str, Any]) -> InPinId:
    return InPinId(node=int(value["node"]), input=int(value["input"]))


__all__ = [
    "TEXT_SLOT",
    "PinKind",
    "OutPinId",
    "InPinId",
    "binding_slot",
    "binding_index",
    "decode_out_pin",
    "decode_in_pin",
]
