"""
Record selection and credential context.

A selection is a ``RecordKind`` flag combination, e.g.
``RecordKind.GPA | RecordKind.EXAM``; membership is tested with ``in``.
"""

from dataclasses import dataclass, field
from enum import Flag, auto
from typing import Iterable


class RecordKind(Flag):
    STUDENT = auto()
    COURSE_TABLE = auto()
    GPA = auto()
    EXAM = auto()
    CARD = auto()
    NETWORK = auto()
    LIBRARY_BOOK = auto()


# Fixed fetch order per backend
REGISTRAR_KINDS = (RecordKind.COURSE_TABLE, RecordKind.GPA, RecordKind.EXAM)
PORTAL_KINDS = (RecordKind.STUDENT, RecordKind.NETWORK, RecordKind.CARD, RecordKind.LIBRARY_BOOK)
ALL_KINDS = REGISTRAR_KINDS + PORTAL_KINDS

NOTHING = RecordKind(0)


def select(*kinds: RecordKind) -> RecordKind:
    """Union of the given kinds; no argument selects nothing."""
    selection = NOTHING
    for kind in kinds:
        selection |= kind
    return selection


def parse_kinds(names: Iterable[str]) -> RecordKind:
    """
    Build a selection from kind names such as ``gpa`` or ``course_table``.

    ``all`` selects every kind. Names are case-insensitive and may use
    dashes instead of underscores.

    Raises:
        ValueError: for an unknown name
    """
    selection = NOTHING
    for raw in names:
        name = raw.strip().upper().replace('-', '_')
        if not name:
            continue
        if name == 'ALL':
            return select(*ALL_KINDS)
        try:
            selection |= RecordKind[name]
        except KeyError:
            raise ValueError(f"Unknown record kind: {raw!r}") from None
    return selection


@dataclass(frozen=True)
class CredentialContext:
    """Identity of one student plus the record kinds requested for this run."""
    student_id: str
    password: str = field(repr=False)
    semester_id: str = ''
    selection: RecordKind = NOTHING

    def __post_init__(self):
        if not self.student_id:
            raise ValueError("student_id is required")
        if not self.password:
            raise ValueError("password is required")

    def wants(self, kind: RecordKind) -> bool:
        return kind in self.selection

    def wants_any(self, kinds) -> bool:
        return any(kind in self.selection for kind in kinds)
