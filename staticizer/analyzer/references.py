"""Read/write classification of identifier occurrences.

Every identifier occurrence is visited together with its parent chain, captured
as an immutable tuple (nearest parent first). Classification is a pure function
of that pair, so nothing depends on where a walker happens to be standing.

An occurrence is a WRITE when it is the target of an assignment, a compound
assignment, or an increment/decrement; it is a READ when its value is consumed.
Declaring a new binding with the same name is neither. Shapes not covered by
the rules below are reads, which can only ever block a rewrite.
"""
import enum
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
from tree_sitter import Node


class Access(enum.Flag):
    NONE = 0
    READ = 1
    WRITE = 2
    READ_WRITE = 3


@dataclass(frozen=True)
class Occurrence:
    """An identifier node plus its ancestors, nearest first."""
    node: Node
    ancestors: Tuple[Node, ...]

    @property
    def parent(self) -> Optional[Node]:
        return self.ancestors[0] if self.ancestors else None


@dataclass(frozen=True)
class Reference:
    """One classified occurrence of a tracked name."""
    name: str
    access: Access
    line: int
    column: int
    method: Optional[str] = None  # Signature of the enclosing method

    @property
    def is_read(self) -> bool:
        return bool(self.access & Access.READ)

    @property
    def is_write(self) -> bool:
        return bool(self.access & Access.WRITE)


@dataclass
class ReferenceSet:
    """Read and write references of one name inside one subtree."""
    name: str
    reads: List[Reference] = field(default_factory=list)
    writes: List[Reference] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.reads or self.writes)

    def add(self, reference: Reference):
        if reference.is_read:
            self.reads.append(reference)
        if reference.is_write:
            self.writes.append(reference)


# Statements and expressions whose 'condition' child is evaluated for its value
CONDITION_OWNERS = {
    'ternary_expression',
    'if_statement',
    'while_statement',
    'do_statement',
    'for_statement',
    'switch_expression',
    'switch_statement',
}

# Where the search for an enclosing condition stops
CONDITION_BARRIERS = {
    'block',
    'class_body',
    'lambda_expression',
    'expression_statement',
    'local_variable_declaration',
    'method_declaration',
}

# Nodes that introduce a new binding through their 'name' field
BINDING_PARENTS = {
    'variable_declarator',
    'formal_parameter',
    'catch_formal_parameter',
    'enhanced_for_statement',
    'resource',
    'instanceof_expression',
}

NESTED_BODIES = {'class_body', 'interface_body', 'enum_body'}


def _same(a: Optional[Node], b: Optional[Node]) -> bool:
    return a is not None and b is not None and a.id == b.id


def _is_self_field(parent: Node, child: Node) -> bool:
    """True when child is the field part of `this.child`."""
    if parent.type != 'field_access':
        return False
    obj = parent.child_by_field_name('object')
    return obj is not None and obj.type == 'this' and _same(parent.child_by_field_name('field'), child)


def _unwrap(node: Node, ancestors: Tuple[Node, ...]) -> Tuple[Node, Tuple[Node, ...]]:
    """Climb out of grouping parentheses and `this.` qualification."""
    while ancestors:
        parent = ancestors[0]
        if parent.type == 'parenthesized_expression' or _is_self_field(parent, node):
            node, ancestors = parent, ancestors[1:]
        else:
            break
    return node, ancestors


def _is_condition_of(statement: Node, child: Node) -> bool:
    if statement.type in CONDITION_OWNERS:
        return _same(statement.child_by_field_name('condition'), child)
    if statement.type == 'synchronized_statement':
        return child.type == 'parenthesized_expression'
    return False


def in_condition(node: Node, ancestors: Tuple[Node, ...]) -> bool:
    """Is the expression part of a loop/branch condition?"""
    child = node
    for parent in ancestors:
        if _is_condition_of(parent, child):
            return True
        if parent.type in CONDITION_BARRIERS or parent.type.endswith('_statement'):
            return False
        child = parent
    return False


def value_discarded(node: Node, ancestors: Tuple[Node, ...]) -> bool:
    """Is the expression evaluated only for its side effect?

    That is the case for a bare expression statement and for the init/update
    slots of a classic for loop.
    """
    node, ancestors = _unwrap(node, ancestors)
    if not ancestors:
        return False
    parent = ancestors[0]
    if parent.type == 'expression_statement':
        return True
    if parent.type == 'for_statement':
        slots = parent.children_by_field_name('init') + parent.children_by_field_name('update')
        return any(_same(slot, node) for slot in slots)
    return False


def is_declared_name(node: Node, parent: Optional[Node]) -> bool:
    """Is this identifier the name of a new binding rather than a reference?"""
    if parent is None:
        return False
    if parent.type in BINDING_PARENTS:
        return _same(parent.child_by_field_name('name'), node)
    if parent.type == 'lambda_expression':
        return _same(parent.child_by_field_name('parameters'), node)
    return parent.type == 'inferred_parameters'


def classify(occurrence: Occurrence) -> Access:
    """Classify one identifier occurrence as READ, WRITE, both, or neither.

    Rules, first match wins:
      1. target of `=`: WRITE (READ_WRITE inside a condition)
      2. name of a new binding: NONE
      3. target of a compound assignment: WRITE (READ_WRITE if its value is used)
      4. operand of ++/--: WRITE (READ_WRITE if its value is used)
      5. anything else: READ
    """
    target, chain = _unwrap(occurrence.node, occurrence.ancestors)
    parent = chain[0] if chain else None

    if parent is not None and parent.type == 'assignment_expression' \
            and _same(parent.child_by_field_name('left'), target):
        operator = parent.child_by_field_name('operator')
        if operator is None or operator.type == '=':
            return Access.READ_WRITE if in_condition(parent, chain[1:]) else Access.WRITE
        return Access.WRITE if value_discarded(parent, chain[1:]) else Access.READ_WRITE

    if is_declared_name(occurrence.node, occurrence.parent):
        return Access.NONE

    if parent is not None and parent.type == 'update_expression':
        return Access.WRITE if value_discarded(parent, chain[1:]) else Access.READ_WRITE

    return Access.READ


def iter_occurrences(subtree: Node) -> Iterator[Occurrence]:
    """Yield every identifier in the subtree with its parent chain.

    The chain stops at the subtree root; nothing outside it is ever consulted.
    """
    stack: List[Tuple[Node, Tuple[Node, ...]]] = [(subtree, ())]
    while stack:
        node, ancestors = stack.pop()
        if node.type == 'identifier':
            yield Occurrence(node, ancestors)
            continue
        child_ancestors = (node,) + ancestors
        # Reversed so occurrences come out in source order
        for child in reversed(node.named_children):
            stack.append((child, child_ancestors))


def collect_references(subtree: Optional[Node], names: Iterable[str],
                       method: Optional[str] = None) -> Dict[str, ReferenceSet]:
    """Classify all occurrences of the tracked names in one walk.

    Args:
        subtree: Usually a method body; None yields empty sets
        names: Names to track (fields and methods of the class)
        method: Signature of the enclosing method, stored on each Reference

    Returns:
        Mapping name -> ReferenceSet (every tracked name present)
    """
    results = {name: ReferenceSet(name) for name in names}
    if subtree is None or not results:
        return results

    wanted = {name.encode('utf-8'): name for name in results}
    for occurrence in iter_occurrences(subtree):
        name = wanted.get(occurrence.node.text)
        if name is None:
            continue
        access = classify(occurrence)
        if access == Access.NONE:
            continue
        row, column = occurrence.node.start_point
        results[name].add(Reference(
            name=name,
            access=access,
            line=row + 1,
            column=column + 1,
            method=method,
        ))
    return results


def find_references(subtree: Optional[Node], name: str) -> ReferenceSet:
    """Read and write references of a single name within a subtree."""
    return collect_references(subtree, [name])[name]


def references(subtree: Optional[Node], name: str) -> bool:
    """Does the subtree read or write the name?"""
    return find_references(subtree, name).found


def uses_receiver(subtree: Optional[Node]) -> bool:
    """Does the subtree use `this` or `super` of the enclosing instance?

    A bare `this`/`super` inside a nested class body refers to that nested
    object and is ignored; a qualified `Outer.this` always counts.
    """
    if subtree is None:
        return False
    stack: List[Tuple[Node, Optional[Node], bool]] = [(subtree, None, False)]
    while stack:
        node, parent, nested = stack.pop()
        if node.type in ('this', 'super'):
            if not nested or _is_qualified_receiver(parent, node):
                return True
            continue
        child_nested = nested or node.type in NESTED_BODIES
        for child in node.named_children:
            stack.append((child, node, child_nested))
    return False


def _is_qualified_receiver(parent: Optional[Node], node: Node) -> bool:
    """True for the `this` of `Outer.this`."""
    if parent is None or parent.type != 'field_access':
        return False
    obj = parent.child_by_field_name('object')
    return (
        obj is not None
        and obj.type != 'this'
        and _same(parent.child_by_field_name('field'), node)
    )
