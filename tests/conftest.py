"""Shared fixtures for the Staticizer test-suite."""
import textwrap

import pytest

from staticizer.analyzer.eligibility import AnalysisOptions, EligibilityEngine
from staticizer.analyzer.parser import JavaParser
from staticizer.analyzer.scope import extract_scope, iter_class_declarations
from staticizer.analyzer.staticize_pass import StaticizePass
from staticizer.config import reset_config


@pytest.fixture(scope="session")
def java_parser():
    return JavaParser()


@pytest.fixture
def staticize():
    """A pass with the default options (instance-field references only)."""
    return StaticizePass()


@pytest.fixture
def scope_of(java_parser):
    """Parse source and return the ClassScope of the named class."""
    def build(source: str, class_name: str = None):
        tree = java_parser.parse_source(textwrap.dedent(source))
        for qualified_name, node in iter_class_declarations(tree):
            if class_name is None or qualified_name == class_name:
                return extract_scope(node, qualified_name.rpartition('.')[0] or None)
        raise AssertionError(f"class {class_name} not found")
    return build


@pytest.fixture
def analyze(scope_of):
    """Run the eligibility engine on one class of the source."""
    def run(source: str, class_name: str = None, options: AnalysisOptions = AnalysisOptions()):
        return EligibilityEngine(options).analyze(scope_of(source, class_name))
    return run


@pytest.fixture
def method_body(java_parser):
    """Wrap statements in `class T { <members> void m() { <body> } }` and return the body node."""
    def build(body: str, members: str = ""):
        source = f"class T {{\n{members}\nvoid m() {{\n{textwrap.dedent(body)}\n}}\n}}\n"
        tree = java_parser.parse_source(source)
        assert not tree.root_node.has_error, f"test source does not parse:\n{source}"
        for _, node in iter_class_declarations(tree):
            scope = extract_scope(node)
            method = next(m for m in scope.methods if m.name == 'm')
            return method.body
        raise AssertionError("class T not found")
    return build


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Every test starts with a clean STATICIZER_* environment and config singleton."""
    import os
    for variable in list(os.environ):
        if variable.startswith("STATICIZER_"):
            monkeypatch.delenv(variable, raising=False)
    reset_config()
    yield
    reset_config()
