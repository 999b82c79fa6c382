"""Eligibility fixpoint: which candidate methods can become static.

The reference graph has one node per instance field and one per method; an
edge M -> X means M's body reads or writes the name X. Matching is by name
only, so overloads share their incoming edges.

A method is instance-dependent when it touches an instance field directly or
references, by name, a method already known to be instance-dependent. The
fixpoint grows that set pass by pass; whatever candidates are left when a pass
moves nothing are eligible.
"""
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional, Set, Tuple
import networkx as nx

from .references import collect_references, uses_receiver
from .scope import ClassScope, MethodDecl
from ..utils.logger import get_logger

logger = get_logger(__name__)

RECEIVER_NODE = ('receiver', 'this')


@dataclass(frozen=True)
class AnalysisOptions:
    """Switches for optional seeds added on top of field references.

    Both are off by default, so only instance-field references seed the
    fixpoint. CONSERVATIVE turns both on.

    Attributes:
        track_receiver: An explicit this/super makes a method instance-dependent
        seed_overridable: Non-static methods that are not candidates
            (overridable, lifecycle hooks, bodiless) are instance-dependent,
            because calling one needs a receiver
    """
    track_receiver: bool = False
    seed_overridable: bool = False

    @classmethod
    def from_config(cls, config) -> 'AnalysisOptions':
        return cls(
            track_receiver=config.track_receiver,
            seed_overridable=config.seed_overridable,
        )


CONSERVATIVE = AnalysisOptions(track_receiver=True, seed_overridable=True)


def field_node(name: str) -> Tuple[str, str]:
    return ('field', name)


def method_node(method: MethodDecl) -> Tuple[str, str]:
    return ('method', method.signature)


@dataclass
class EligibilityResult:
    """Outcome of the fixpoint for one ClassScope."""
    scope: ClassScope
    eligible: List[MethodDecl]
    instance_dependent: List[MethodDecl]
    reasons: Dict[str, str]  # signature -> why it is instance-dependent
    passes: int
    graph: nx.DiGraph = field(repr=False)

    def is_eligible(self, signature: str) -> bool:
        return any(m.signature == signature for m in self.eligible)

    @property
    def rejected_candidates(self) -> List[MethodDecl]:
        """Candidates that turned out to be instance-dependent."""
        return [m for m in self.instance_dependent if m.is_candidate]

    def dependency_chain(self, method: MethodDecl) -> List[str]:
        """Names leading from the method to instance state, e.g. ['getPhrase', 'getInstanceWord', 'instanceWord'].

        Returns an empty list for methods that are not instance-dependent.
        """
        if method.signature not in self.reasons:
            return []
        source = method_node(method)
        targets = [
            n for n, data in self.graph.nodes(data=True)
            if data.get('seed') and n != source
        ]
        best: Optional[List[Hashable]] = None
        for target in targets:
            try:
                path = nx.shortest_path(self.graph, source, target)
            except nx.NetworkXNoPath:
                continue
            if best is None or len(path) < len(best):
                best = path
        if best is None:
            # Seeded by itself (overridable, or uses this/super)
            return [method.name]
        return [self.graph.nodes[n]['label'] for n in best]


def build_reference_graph(scope: ClassScope, options: AnalysisOptions = AnalysisOptions()) -> nx.DiGraph:
    """Build the name-based reference graph of one class scope.

    Args:
        scope: ClassScope to analyze
        options: Which conservative seeds to mark

    Returns:
        DiGraph whose nodes carry 'kind', 'label' and 'seed' attributes
    """
    graph = nx.DiGraph()
    instance_fields = [f.name for f in scope.instance_fields]
    for name in instance_fields:
        graph.add_node(field_node(name), kind='field', label=name, seed=True)
    if options.track_receiver:
        graph.add_node(RECEIVER_NODE, kind='receiver', label='this', seed=True)

    methods_by_name: Dict[str, List[MethodDecl]] = {}
    for method in scope.methods:
        methods_by_name.setdefault(method.name, []).append(method)
        seeded = (
            options.seed_overridable
            and not method.is_type_level
            and not method.is_candidate
        )
        graph.add_node(method_node(method), kind='method', label=method.name, seed=seeded)

    tracked = list(dict.fromkeys(instance_fields + list(methods_by_name)))
    for method in scope.methods:
        source = method_node(method)
        found = collect_references(method.body, tracked, method=method.signature)
        for name in instance_fields:
            if found[name].found:
                graph.add_edge(source, field_node(name))
        for name, targets in methods_by_name.items():
            if found[name].found:
                for target in targets:
                    graph.add_edge(source, method_node(target))
        if options.track_receiver and uses_receiver(method.body):
            graph.add_edge(source, RECEIVER_NODE)

    return graph


class EligibilityEngine:
    """Computes the eligible / instance-dependent partition of a class scope."""

    def __init__(self, options: AnalysisOptions = AnalysisOptions()):
        self.options = options

    def analyze(self, scope: ClassScope) -> EligibilityResult:
        """Run the fixpoint over one class.

        Args:
            scope: ClassScope produced by extract_scope()

        Returns:
            EligibilityResult; `eligible` and `instance_dependent` keep
            declaration order
        """
        graph = build_reference_graph(scope, self.options)
        reasons: Dict[str, str] = {}
        dependent: Set[MethodDecl] = set()

        # Seed: direct instance state
        for method in scope.methods:
            reason = self._seed_reason(graph, method)
            if reason:
                dependent.add(method)
                reasons[method.signature] = reason

        candidates = [m for m in scope.candidates if m not in dependent]
        by_node = {method_node(m): m for m in scope.methods}

        passes = 0
        while True:
            passes += 1
            snapshot = tuple(candidates)
            frozen_dependent = frozenset(method_node(m) for m in dependent)
            moves: List[Tuple[MethodDecl, MethodDecl]] = []
            for method in snapshot:
                for target in graph.successors(method_node(method)):
                    if target in frozen_dependent:
                        moves.append((method, by_node[target]))
                        break
            if not moves:
                break
            for method, cause in moves:
                dependent.add(method)
                reasons[method.signature] = f"calls instance-dependent '{cause.name}'"
            moved = {m for m, _ in moves}
            candidates = [m for m in candidates if m not in moved]

        logger.debug(
            "%s: %d eligible, %d instance-dependent after %d pass(es)",
            scope.name, len(candidates), len(dependent), passes,
        )
        return EligibilityResult(
            scope=scope,
            eligible=candidates,
            instance_dependent=[m for m in scope.methods if m in dependent],
            reasons=reasons,
            passes=passes,
            graph=graph,
        )

    def _seed_reason(self, graph: nx.DiGraph, method: MethodDecl) -> Optional[str]:
        node = method_node(method)
        touched = [
            graph.nodes[t]['label'] for t in graph.successors(node)
            if graph.nodes[t]['kind'] == 'field'
        ]
        if touched:
            return f"references instance field '{touched[0]}'"
        if graph.has_edge(node, RECEIVER_NODE):
            return "uses this/super"
        if graph.nodes[node]['seed']:
            if not method.is_non_overridable:
                return "overridable instance method"
            if method.is_reserved_lifecycle:
                return "serialization lifecycle hook"
            return "instance method without a body"
        return None


def find_eligible_methods(scope: ClassScope, options: AnalysisOptions = AnalysisOptions()) -> List[MethodDecl]:
    """Shortcut returning only the eligible methods of a scope."""
    return EligibilityEngine(options).analyze(scope).eligible
