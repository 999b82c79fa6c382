"""Class scope extraction from Java syntax trees.

A ClassScope is the flat, as-declared view of one class body: which names are
instance fields and which methods exist, with the flags the eligibility engine
needs. Nested classes get their own scope; nothing links a scope to the class
that encloses it.
"""
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple
from tree_sitter import Node, Tree

from ..errors import MalformedClassError


# Declarations that open a class-like body
CLASS_NODE_TYPES = {
    'class_declaration',
    'interface_declaration',
    'enum_declaration',
    'record_declaration',
}

# Serialization hooks, matched by name and parameter simple type names
RESERVED_LIFECYCLE_SIGNATURES = {
    ('writeObject', ('ObjectOutputStream',)),
    ('readObject', ('ObjectInputStream',)),
    ('readObjectNoData', ()),
    ('writeReplace', ()),
    ('readResolve', ()),
}


@dataclass(frozen=True)
class FieldDecl:
    """A field of a class body (first declared name only)."""
    name: str
    is_type_level: bool
    line: int


@dataclass(frozen=True)
class MethodDecl:
    """A method of a class body."""
    name: str
    owner: str  # Qualified name of the declaring class (Outer.Inner)
    parameter_types: Tuple[str, ...]
    modifiers: Tuple[str, ...]
    line: int
    node: Node = field(compare=False, hash=False, repr=False)
    body: Optional[Node] = field(compare=False, hash=False, repr=False)  # None for abstract/native

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.parameter_types)})"

    @property
    def is_type_level(self) -> bool:
        return 'static' in self.modifiers

    @property
    def is_non_overridable(self) -> bool:
        return 'private' in self.modifiers or 'final' in self.modifiers

    @property
    def is_reserved_lifecycle(self) -> bool:
        simple_types = tuple(_simple_type_name(t) for t in self.parameter_types)
        return (self.name, simple_types) in RESERVED_LIFECYCLE_SIGNATURES

    @property
    def is_candidate(self) -> bool:
        """Non-overridable, not a lifecycle hook, and has a body to analyze."""
        return (
            self.is_non_overridable
            and not self.is_reserved_lifecycle
            and self.body is not None
        )


@dataclass(frozen=True)
class ClassScope:
    """Fields and methods of one class body, in declaration order."""
    name: str
    node: Node = field(compare=False, hash=False, repr=False)
    fields: Tuple[FieldDecl, ...] = ()
    methods: Tuple[MethodDecl, ...] = ()

    @property
    def instance_fields(self) -> List[FieldDecl]:
        return [f for f in self.fields if not f.is_type_level]

    @property
    def candidates(self) -> List[MethodDecl]:
        return [m for m in self.methods if m.is_candidate]

    def method(self, signature: str) -> Optional[MethodDecl]:
        """Look up a method by signature, e.g. 'getWord()'."""
        for method in self.methods:
            if method.signature == signature:
                return method
        return None


def node_text(node: Node) -> str:
    return node.text.decode('utf-8', errors='replace')


def modifier_keywords(node: Node) -> Tuple[str, ...]:
    """Keyword modifiers of a declaration (annotations excluded), in source order."""
    for child in node.children:
        if child.type == 'modifiers':
            return tuple(c.type for c in child.children if not c.is_named)
    return ()


def _simple_type_name(type_text: str) -> str:
    """java.io.ObjectOutputStream -> ObjectOutputStream; List<String> -> List."""
    base = type_text.split('<', 1)[0].strip()
    return base.rsplit('.', 1)[-1]


def _parameter_types(parameters: Optional[Node]) -> Tuple[str, ...]:
    if parameters is None:
        return ()
    types = []
    for child in parameters.named_children:
        if child.type == 'formal_parameter':
            type_node = child.child_by_field_name('type')
            types.append(node_text(type_node) if type_node is not None else '?')
        elif child.type == 'spread_parameter':
            type_node = next(
                (c for c in child.named_children
                 if c.type not in ('modifiers', 'variable_declarator')),
                None,
            )
            types.append((node_text(type_node) if type_node is not None else '?') + '...')
    return tuple(types)


def _class_body_members(class_node: Node) -> List[Node]:
    """Direct member declarations of a class-like declaration."""
    body = class_node.child_by_field_name('body')
    if body is None:
        return []
    if body.type == 'enum_body':
        members = []
        for child in body.named_children:
            if child.type == 'enum_body_declarations':
                members.extend(child.named_children)
        return members
    return list(body.named_children)


def _has_own_syntax_error(class_node: Node) -> bool:
    """Syntax errors in the header or direct members; nested classes excluded."""
    body = class_node.child_by_field_name('body')
    for child in class_node.children:
        if body is not None and child.id == body.id:
            continue
        if child.has_error:
            return True
    if body is None:
        return False
    members = list(body.children)
    for child in body.children:
        if child.type == 'enum_body_declarations':
            members.extend(child.children)
    return any(
        member.has_error
        for member in members
        if member.type not in CLASS_NODE_TYPES and member.type != 'enum_body_declarations'
    )


def _first_declared_name(declaration: Node) -> Optional[Node]:
    declarator = declaration.child_by_field_name('declarator')
    if declarator is None:
        return None
    return declarator.child_by_field_name('name')


def extract_scope(class_node: Node, owner_prefix: Optional[str] = None) -> ClassScope:
    """Build the ClassScope of one class-like declaration.

    Args:
        class_node: class/interface/enum/record declaration node
        owner_prefix: Qualified name of the enclosing class, if nested

    Returns:
        ClassScope with fields and methods in declaration order

    Raises:
        MalformedClassError: If the declaration is not a class or contains
            syntax errors
    """
    name_node = class_node.child_by_field_name('name')
    simple_name = node_text(name_node) if name_node is not None else '<anonymous>'
    qualified_name = f"{owner_prefix}.{simple_name}" if owner_prefix else simple_name

    if class_node.type not in CLASS_NODE_TYPES:
        raise MalformedClassError(qualified_name, f"not a class declaration: {class_node.type}")
    if _has_own_syntax_error(class_node):
        raise MalformedClassError(qualified_name, "contains syntax errors")

    is_interface = class_node.type == 'interface_declaration'
    fields: List[FieldDecl] = []
    methods: List[MethodDecl] = []

    if class_node.type == 'record_declaration':
        # Record components are instance state
        components = class_node.child_by_field_name('parameters')
        if components is not None:
            for component in components.named_children:
                component_name = component.child_by_field_name('name')
                if component_name is not None:
                    fields.append(FieldDecl(
                        name=node_text(component_name),
                        is_type_level=False,
                        line=component.start_point[0] + 1,
                    ))

    for member in _class_body_members(class_node):
        if member.type in ('field_declaration', 'constant_declaration'):
            declared = _first_declared_name(member)
            if declared is None:
                continue
            is_static = (
                is_interface
                or member.type == 'constant_declaration'
                or 'static' in modifier_keywords(member)
            )
            fields.append(FieldDecl(
                name=node_text(declared),
                is_type_level=is_static,
                line=member.start_point[0] + 1,
            ))
        elif member.type == 'method_declaration':
            method_name = member.child_by_field_name('name')
            if method_name is None:
                continue
            methods.append(MethodDecl(
                name=node_text(method_name),
                owner=qualified_name,
                parameter_types=_parameter_types(member.child_by_field_name('parameters')),
                modifiers=modifier_keywords(member),
                line=member.start_point[0] + 1,
                node=member,
                body=member.child_by_field_name('body'),
            ))

    return ClassScope(
        name=qualified_name,
        node=class_node,
        fields=tuple(fields),
        methods=tuple(methods),
    )


def iter_class_declarations(tree: Tree | Node) -> Iterator[Tuple[str, Node]]:
    """Enumerate top-level and member classes in pre-order.

    Classes local to a method body and anonymous classes are not visited.

    Yields:
        (qualified class name, declaration node)
    """
    root = tree.root_node if isinstance(tree, Tree) else tree

    def visit(nodes: List[Node], prefix: Optional[str]):
        for node in nodes:
            if node.type not in CLASS_NODE_TYPES:
                continue
            name_node = node.child_by_field_name('name')
            if name_node is None:
                continue
            simple_name = node_text(name_node)
            qualified_name = f"{prefix}.{simple_name}" if prefix else simple_name
            yield qualified_name, node
            yield from visit(_class_body_members(node), qualified_name)

    yield from visit(list(root.named_children), None)
