"""Static modifier insertion for eligible methods.

Edits are plain byte insertions into the original source, so every byte that
is not part of an insertion stays identical (comments, formatting, unrelated
members).
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..analyzer.scope import ClassScope, MethodDecl

STATIC_KEYWORD = b"static"

# The new modifier goes right after the last of these
ANCHOR_KEYWORDS = {'public', 'protected', 'private', 'final'}


@dataclass(frozen=True)
class Insertion:
    """Text to insert at a byte offset of the original source."""
    offset: int
    text: bytes


@dataclass(frozen=True)
class MarkedMethod:
    """A (class identity, method identity) pair that was made static."""
    class_name: str
    signature: str
    line: int

    def __str__(self) -> str:
        return f"{self.class_name}.{self.signature}"


def _insertion_offset(method: MethodDecl) -> Optional[int]:
    """Byte offset just after the last visibility/finality keyword."""
    for child in method.node.children:
        if child.type != 'modifiers':
            continue
        anchors = [c for c in child.children if c.type in ANCHOR_KEYWORDS]
        if anchors:
            return anchors[-1].end_byte
    return None


class StaticModifierInserter:
    """Adds `static` to eligible methods without touching anything else."""

    def plan(self, scope: ClassScope, eligible: Iterable[MethodDecl]) -> List[Insertion]:
        """Compute insertions for one class.

        Methods that are already static need no edit and are skipped.

        Args:
            scope: ClassScope the methods belong to
            eligible: Methods the eligibility engine accepted

        Returns:
            Insertions in ascending offset order
        """
        insertions = []
        for method in eligible:
            if method.is_type_level or method.owner != scope.name:
                continue
            offset = _insertion_offset(method)
            if offset is None:
                # Candidates always carry private or final; nothing to anchor on otherwise
                continue
            insertions.append(Insertion(offset=offset, text=b" " + STATIC_KEYWORD))
        return sorted(insertions, key=lambda i: i.offset)

    def marked(self, scope: ClassScope, eligible: Iterable[MethodDecl]) -> List[MarkedMethod]:
        """The (class, method) pairs plan() would change, in declaration order."""
        return [
            MarkedMethod(class_name=scope.name, signature=m.signature, line=m.line)
            for m in eligible
            if not m.is_type_level and m.owner == scope.name and _insertion_offset(m) is not None
        ]

    def apply(self, source: bytes, insertions: Iterable[Insertion]) -> bytes:
        """Apply insertions to the original source bytes.

        Applied in DESCENDING offset order so earlier offsets stay valid.

        Args:
            source: Source bytes the tree was parsed from
            insertions: Insertions from one or more plan() calls

        Returns:
            Modified source bytes
        """
        modified = bytearray(source)
        for insertion in sorted(insertions, key=lambda i: i.offset, reverse=True):
            modified[insertion.offset:insertion.offset] = insertion.text
        return bytes(modified)
