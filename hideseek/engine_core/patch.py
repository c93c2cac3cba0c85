"""
Patch - Partial updates to a session record.

A patch is what the reducer hands to the store. It is a list of
operations on nested paths of the record dict:
- SET: write a value (intermediate dicts are created)
- DELETE: remove a field (missing fields are fine)
- INCREMENT: add to a numeric field (missing counts as 0)
- APPEND: add to a list field (missing counts as [])

Operations on distinct paths never clobber each other, so updating one
seeker's location leaves every other entry alone. INCREMENT and APPEND
are commutative; guarded commands additionally carry expected_version
so the store can reject a patch computed against a stale read.
Unpinned patches set reject_if_ended instead, so they still cannot
land on a game that ended after they were computed.
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PatchOpType(Enum):
    """Kinds of patch operation."""
    SET = "set"
    DELETE = "delete"
    INCREMENT = "increment"
    APPEND = "append"


@dataclass(frozen=True)
class PatchOp:
    """A single operation on one nested path."""
    op: PatchOpType
    path: tuple[str, ...]
    value: Any = None

    @property
    def dotted_path(self) -> str:
        return ".".join(self.path)


@dataclass
class Patch:
    """
    An ordered batch of operations applied atomically by a store.

    Builder methods return the patch so calls can be chained:

        Patch(expected_version=3).set("hider", value="u1").set("status", value="active")
    """
    ops: list[PatchOp] = field(default_factory=list)
    expected_version: int | None = None
    reject_if_ended: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.ops

    def set(self, *path: str, value: Any) -> Patch:
        self.ops.append(PatchOp(PatchOpType.SET, tuple(path), value))
        return self

    def delete(self, *path: str) -> Patch:
        self.ops.append(PatchOp(PatchOpType.DELETE, tuple(path)))
        return self

    def increment(self, *path: str, amount: int | float) -> Patch:
        self.ops.append(PatchOp(PatchOpType.INCREMENT, tuple(path), amount))
        return self

    def append(self, *path: str, value: Any) -> Patch:
        self.ops.append(PatchOp(PatchOpType.APPEND, tuple(path), value))
        return self

    def paths(self) -> list[str]:
        """Dotted paths touched, for logging."""
        return [op.dotted_path for op in self.ops]

    def apply_to(self, record: dict[str, Any]) -> dict[str, Any]:
        """Return a new record with every operation applied in order."""
        new_record = deepcopy(record)
        for op in self.ops:
            _apply_op(new_record, op)
        return new_record


def _parent(record: dict[str, Any], path: tuple[str, ...], create: bool) -> dict[str, Any] | None:
    node = record
    for key in path[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            if not create:
                return None
            child = {}
            node[key] = child
        node = child
    return node


def _apply_op(record: dict[str, Any], op: PatchOp):
    if not op.path:
        raise ValueError("Patch operation needs a non-empty path")
    leaf = op.path[-1]

    if op.op == PatchOpType.DELETE:
        parent = _parent(record, op.path, create=False)
        if parent is not None:
            parent.pop(leaf, None)
        return

    parent = _parent(record, op.path, create=True)
    if op.op == PatchOpType.SET:
        parent[leaf] = deepcopy(op.value)
    elif op.op == PatchOpType.INCREMENT:
        parent[leaf] = (parent.get(leaf) or 0) + op.value
    elif op.op == PatchOpType.APPEND:
        current = list(parent.get(leaf) or [])
        current.append(deepcopy(op.value))
        parent[leaf] = current
