"""One staticize pass over a Java compilation unit.

Parse -> enumerate classes -> per class: extract scope, run the eligibility
fixpoint, plan insertions -> apply all insertions at once. Each class is
analyzed on its own; a class that fails is reported and left untouched while
the rest of the unit is still processed.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .eligibility import AnalysisOptions, EligibilityEngine, EligibilityResult
from .parser import JavaParser
from .scope import MethodDecl, extract_scope, iter_class_declarations
from ..errors import MalformedClassError
from ..reaper.static_marker import Insertion, MarkedMethod, StaticModifierInserter
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ClassReport:
    """Per-class outcome of a pass."""
    class_name: str
    line: int
    result: Optional[EligibilityResult] = None
    changes: List[MarkedMethod] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def eligible(self) -> List[MethodDecl]:
        return self.result.eligible if self.result else []

    @property
    def skipped(self) -> bool:
        return self.error is not None


@dataclass
class PassResult:
    """Outcome of a pass over one compilation unit."""
    file_path: str
    original: str
    source: str
    changes: List[MarkedMethod] = field(default_factory=list)
    reports: List[ClassReport] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.source != self.original

    @property
    def failed_classes(self) -> List[ClassReport]:
        return [r for r in self.reports if r.skipped]


class StaticizePass:
    """Finds false instance methods and marks them static."""

    def __init__(self, options: Optional[AnalysisOptions] = None,
                 parser: Optional[JavaParser] = None):
        """Initialize the pass.

        Args:
            options: Engine switches (defaults to field references only)
            parser: Reusable JavaParser (created on demand otherwise)
        """
        self.options = options or AnalysisOptions()
        self.parser = parser or JavaParser()
        self.engine = EligibilityEngine(self.options)
        self.inserter = StaticModifierInserter()

    def run_source(self, source: bytes | str, file_path: str = "<memory>") -> PassResult:
        """Run the pass over in-memory source.

        Args:
            source: Java source (UTF-8 bytes or text)
            file_path: Label used in reports and logs

        Returns:
            PassResult with the modified source and per-class reports
        """
        source_bytes = source.encode('utf-8') if isinstance(source, str) else source
        tree = self.parser.parse_source(source_bytes)

        reports: List[ClassReport] = []
        insertions: List[Insertion] = []
        changes: List[MarkedMethod] = []

        for class_name, class_node in iter_class_declarations(tree):
            report = ClassReport(class_name=class_name, line=class_node.start_point[0] + 1)
            reports.append(report)
            try:
                owner_prefix = class_name.rpartition('.')[0] or None
                scope = extract_scope(class_node, owner_prefix)
                report.result = self.engine.analyze(scope)
                insertions.extend(self.inserter.plan(scope, report.result.eligible))
                report.changes = self.inserter.marked(scope, report.result.eligible)
                changes.extend(report.changes)
            except MalformedClassError as e:
                report.error = e.reason
                logger.warning("%s: skipping %s (%s)", file_path, class_name, e.reason)
            except Exception as e:
                report.error = f"{type(e).__name__}: {e}"
                logger.exception("%s: analysis of %s failed", file_path, class_name)

        original = source_bytes.decode('utf-8')
        modified = self.inserter.apply(source_bytes, insertions).decode('utf-8') if insertions else original

        logger.debug("%s: %d class(es), %d method(s) marked static",
                     file_path, len(reports), len(changes))
        return PassResult(
            file_path=file_path,
            original=original,
            source=modified,
            changes=changes,
            reports=reports,
        )

    def run_file(self, file_path: str | Path, encoding: str = 'utf-8') -> PassResult:
        """Run the pass over a file without writing anything.

        Raises:
            SourceReadError: If the file cannot be read or decoded
        """
        source_bytes = self.parser.read_source(file_path, encoding)
        return self.run_source(source_bytes, str(file_path))
