"""Decide how two operations shown in a trace relate to each other.

Operations sharing ``meta.id`` are versions of the same edit. Their
``transformed_against`` chains tell how far apart the versions are: when one
chain is a prefix of the other, the shorter one is an ancestor of the longer
one by the difference in length.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ot_trace.db.schemas.operation import OperationWithoutPayload

_PLURALS = ("一次", "两次", "三次", "四次", "五次", "六次", "七次", "八次", "九次")
MANY_TIMES = "多次"


class RelationshipKind(str, Enum):
    UNRELATED = "UNRELATED"
    SAME_DEPTH = "SAME_DEPTH"
    ANCESTOR = "ANCESTOR"
    DESCENDANT = "DESCENDANT"
    DIFFERENTLY_TRANSFORMED = "DIFFERENTLY_TRANSFORMED"


@dataclass(frozen=True)
class Relationship:
    kind: RelationshipKind
    steps: int = 0

    @classmethod
    def ancestor(cls, steps: int) -> "Relationship":
        return cls(RelationshipKind.ANCESTOR, steps)

    @classmethod
    def descendant(cls, steps: int) -> "Relationship":
        return cls(RelationshipKind.DESCENDANT, steps)

    @property
    def is_related(self) -> bool:
        return self.kind is not RelationshipKind.UNRELATED


UNRELATED = Relationship(RelationshipKind.UNRELATED)
SAME_DEPTH = Relationship(RelationshipKind.SAME_DEPTH)
DIFFERENTLY_TRANSFORMED = Relationship(RelationshipKind.DIFFERENTLY_TRANSFORMED)


def is_one_prefix_of_the_other(xs: Sequence[str], ys: Sequence[str]) -> bool:
    return all(x == y for x, y in zip(xs, ys))


def relate(a: OperationWithoutPayload, b: OperationWithoutPayload) -> Relationship:
    """Relationship of ``a`` as seen from ``b``.

    ``ANCESTOR(n)`` means ``a`` is ``n`` transformations before ``b``.
    """
    if a.meta.id != b.meta.id:
        return UNRELATED
    if not is_one_prefix_of_the_other(a.transformed_against, b.transformed_against):
        return DIFFERENTLY_TRANSFORMED

    difference = len(a.transformed_against) - len(b.transformed_against)
    if difference < 0:
        return Relationship.ancestor(-difference)
    if difference > 0:
        return Relationship.descendant(difference)
    return SAME_DEPTH


def transformation_plural(count: int) -> str:
    if 1 <= count <= len(_PLURALS):
        return _PLURALS[count - 1]
    return MANY_TIMES


def describe_relationship(relationship: Relationship) -> str:
    """Tooltip text shown on an operation related to the hovered one."""
    kind = relationship.kind
    if kind is RelationshipKind.ANCESTOR:
        return f"{transformation_plural(relationship.steps)} 转化之前"
    if kind is RelationshipKind.DESCENDANT:
        return f"{transformation_plural(relationship.steps)} 转化之后"
    if kind is RelationshipKind.SAME_DEPTH:
        return "同一变更"
    if kind is RelationshipKind.DIFFERENTLY_TRANSFORMED:
        return "differently transformed"
    raise ValueError("Unrelated operations have no description")
