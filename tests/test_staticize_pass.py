"""End-to-end tests for a staticize pass over whole compilation units.

CRITICAL: output must differ from input only by inserted `static` keywords.
"""
import textwrap

import pytest

from staticizer.analyzer.eligibility import CONSERVATIVE
from staticizer.analyzer.staticize_pass import StaticizePass
from staticizer.errors import SourceReadError


def run(staticize, source):
    return staticize.run_source(textwrap.dedent(source))


def test_unrelated_method_becomes_static(staticize):
    """A private method touching no instance state gets `static`, the getter does not."""
    result = run(staticize, """
        class Test {
          private String instanceWord = "sdlkfj";

          private String getInstanceWord() {
            return instanceWord;
          }

          private void doSomethingStaticky() {
            System.out.println("unchanging string");
          }
        }
    """)
    assert result.source == textwrap.dedent("""
        class Test {
          private String instanceWord = "sdlkfj";

          private String getInstanceWord() {
            return instanceWord;
          }

          private static void doSomethingStaticky() {
            System.out.println("unchanging string");
          }
        }
    """)
    assert [str(c) for c in result.changes] == ['Test.doSomethingStaticky()']
    assert result.changes[0].line == 9


def test_true_instance_methods_are_untouched(staticize):
    source = """
        class Test {
          private String magicWord;

          private String getMagicWord() {
            return magicWord;
          }

          private void setMagicWord(String value) {
            magicWord = value;
          }

        }
    """
    result = run(staticize, source)
    assert not result.changed
    assert result.source == textwrap.dedent(source)


def test_caller_of_instance_method_is_untouched(staticize):
    result = run(staticize, """
        class Test {
          private static String staticWord;
          private String instanceWord;

          private String getStaticWord() {
            return staticWord;
          }

          private void setStaticWord(String value) {
            staticWord = value;
          }

          private String getInstanceWord() {
            return instanceWord;
          }

          private void setInstanceWord(String value) {
            instanceWord = value;
          }

          private String getPhrase() {
            return getStaticWord()+getInstanceWord();
          }
        }
    """)
    assert result.source == textwrap.dedent("""
        class Test {
          private static String staticWord;
          private String instanceWord;

          private static String getStaticWord() {
            return staticWord;
          }

          private static void setStaticWord(String value) {
            staticWord = value;
          }

          private String getInstanceWord() {
            return instanceWord;
          }

          private void setInstanceWord(String value) {
            instanceWord = value;
          }

          private String getPhrase() {
            return getStaticWord()+getInstanceWord();
          }
        }
    """)


def test_overridable_methods_are_untouched(staticize):
    source = """
        class Test {
          private static String staticWord;

          protected String getStaticWord() {
            return staticWord;
          }

          public void setStaticWord(String value) {
            staticWord = value;
          }
        }
    """
    assert not run(staticize, source).changed


def test_serialization_hooks_are_untouched(staticize):
    source = """
        import java.io.Serializable;
        import java.io.*;

        class Test implements Serializable {
           private void writeObject(ObjectOutputStream stream) throws IOException {

           }

           private void readObject(ObjectInputStream stream) throws IOException, ClassNotFoundException {

           }

           private void readObjectNoData() throws ObjectStreamException {

           }
        }
    """
    assert not run(staticize, source).changed


def test_nested_classes_are_rewritten(staticize):
    result = run(staticize, """
        class Test {
          private static String magicWord = "magic";

          private String getMagicWord() {
            return magicWord;
          }

          private void setMagicWord(String value) {
            magicWord = value;
          }

          class NestedTest {
              private static String boringWord = "boring";

              private String getBoringWord() {
                return boringWord;
              }

              private void setBoringWord(String value) {
                boringWord = value;
              }
          }

        }
    """)
    assert result.source == textwrap.dedent("""
        class Test {
          private static String magicWord = "magic";

          private static String getMagicWord() {
            return magicWord;
          }

          private static void setMagicWord(String value) {
            magicWord = value;
          }

          class NestedTest {
              private static String boringWord = "boring";

              private static String getBoringWord() {
                return boringWord;
              }

              private static void setBoringWord(String value) {
                boringWord = value;
              }
          }

        }
    """)
    assert [str(c) for c in result.changes] == [
        'Test.getMagicWord()',
        'Test.setMagicWord(String)',
        'Test.NestedTest.getBoringWord()',
        'Test.NestedTest.setBoringWord(String)',
    ]


def test_same_field_name_in_two_classes(staticize):
    """Each class is judged by its own field only."""
    result = run(staticize, """
        class A {
          private int word;
          private int get() { return word; }
        }

        class B {
          private static int word;
          private int get() { return word; }
        }
    """)
    assert [str(c) for c in result.changes] == ['B.get()']
    assert "class A {\n  private int word;\n  private int get()" in result.source
    assert "class B {\n  private static int word;\n  private static int get()" in result.source


class TestModifierPlacement:

    @pytest.mark.parametrize("declaration, expected", [
        ("private void m() { }", "private static void m() { }"),
        ("final void m() { }", "final static void m() { }"),
        ("private final int m() { return 1; }", "private final static int m() { return 1; }"),
        ("public final void m() { }", "public final static void m() { }"),
        ("final private void m() { }", "final private static void m() { }"),
        ("private synchronized void m() { }", "private static synchronized void m() { }"),
        ("@Deprecated\n  private void m() { }", "@Deprecated\n  private static void m() { }"),
        ("private <T> T m(T t) { return t; }", "private static <T> T m(T t) { return t; }"),
    ])
    def test_static_follows_last_visibility_or_final(self, staticize, declaration, expected):
        result = staticize.run_source(f"class T {{\n  {declaration}\n}}\n")
        assert result.source == f"class T {{\n  {expected}\n}}\n"

    def test_comments_and_formatting_survive(self, staticize):
        source = (
            "class T {\n"
            "    // keep me\n"
            "    private   /* spacing */   int   one( )   {\n"
            "        return 1;   // trailing\n"
            "    }\n"
            "}\n"
        )
        result = staticize.run_source(source)
        assert result.source == source.replace("private", "private static", 1)

    def test_crlf_line_endings_survive(self, staticize):
        source = "class T {\r\n  private int one() { return 1; }\r\n}\r\n"
        result = staticize.run_source(source)
        assert result.source == "class T {\r\n  private static int one() { return 1; }\r\n}\r\n"

    def test_non_ascii_text_before_the_method(self, staticize):
        source = 'class T {\n  String s = "héllo wörld";\n  private int one() { return 1; }\n}\n'
        result = staticize.run_source(source)
        assert "private static int one()" in result.source
        assert '"héllo wörld"' in result.source


class TestPassBehavior:

    def test_pass_is_idempotent(self, staticize):
        source = """
            class Test {
              private int x;
              private int a() { return b(); }
              private int b() { return 2; }
              private int c() { return x; }
            }
        """
        first = run(staticize, source)
        second = staticize.run_source(first.source)
        assert [str(c) for c in first.changes] == ['Test.a()', 'Test.b()']
        assert not second.changed
        assert second.changes == []

    def test_already_static_methods_are_not_changed_again(self, staticize):
        result = staticize.run_source("class T {\n  private static int one() { return 1; }\n}\n")
        assert not result.changed
        assert result.reports[0].eligible[0].name == 'one'

    def test_unconsumed_increment_still_disqualifies(self, staticize):
        source = """
            class Counter {
              private int count;
              private void bump() {
                count++;
              }
            }
        """
        assert not run(staticize, source).changed

    def test_enum_methods(self, staticize):
        result = run(staticize, """
            enum Color {
              RED, GREEN;

              private final String label = "c";

              private String tag() { return label; }

              private String prefix() { return "color:"; }
            }
        """)
        assert [str(c) for c in result.changes] == ['Color.prefix()']

    def test_default_mode_marks_caller_of_field_free_method(self, staticize):
        result = staticize.run_source(
            "class T {\n"
            "  public String name() { return \"t\"; }\n"
            "  private String label() { return name(); }\n"
            "}\n"
        )
        assert [str(c) for c in result.changes] == ['T.label()']

    def test_conservative_mode_keeps_caller_of_overridable_method(self):
        staticize = StaticizePass(CONSERVATIVE)
        result = staticize.run_source(
            "class T {\n"
            "  public String name() { return \"t\"; }\n"
            "  private String label() { return name(); }\n"
            "}\n"
        )
        assert not result.changed

    def test_reports_cover_every_class(self, staticize):
        result = run(staticize, """
            class Outer {
              class Inner { }
            }
            interface Api { }
        """)
        assert [(r.class_name, r.line) for r in result.reports] == [
            ('Outer', 2), ('Outer.Inner', 3), ('Api', 5),
        ]
        assert result.failed_classes == []


class TestFailureIsolation:

    SOURCE = textwrap.dedent("""
        class A {
          private int one() { return 1; }
        }

        class B {
          private int two() { return 2; }
        }

        class C {
          private int three() { return 3; }
        }
    """)

    def test_failing_class_is_skipped(self, staticize, monkeypatch):
        analyze = staticize.engine.analyze

        def flaky(scope):
            if scope.name == 'B':
                raise RuntimeError("boom")
            return analyze(scope)

        monkeypatch.setattr(staticize.engine, 'analyze', flaky)
        result = staticize.run_source(self.SOURCE)

        assert [str(c) for c in result.changes] == ['A.one()', 'C.three()']
        assert "private int two()" in result.source
        assert [r.class_name for r in result.failed_classes] == ['B']
        assert result.failed_classes[0].error == "RuntimeError: boom"

    def test_class_with_syntax_error_is_skipped(self, staticize):
        source = textwrap.dedent("""
            class Good {
              private int one() { return 1; }
            }

            class Bad {
              private int two() { return 1 +; }
            }
        """)
        result = staticize.run_source(source)

        assert [str(c) for c in result.changes] == ['Good.one()']
        assert "private int two()" in result.source
        assert [r.class_name for r in result.failed_classes] == ['Bad']
        assert result.failed_classes[0].error == "contains syntax errors"

    def test_syntax_error_in_nested_class_skips_only_that_class(self, staticize):
        source = textwrap.dedent("""
            class Outer {
              private int ok() { return 1; }

              class Inner {
                private void broken( { }
              }
            }

            class Other {
              private int ok2() { return 2; }
            }
        """)
        result = staticize.run_source(source)

        assert [str(c) for c in result.changes] == ['Outer.ok()', 'Other.ok2()']
        assert "private static int ok()" in result.source
        assert [r.class_name for r in result.failed_classes] == ['Outer.Inner']


class TestSoundness:

    SOURCE = textwrap.dedent("""
        class Shapes {
          private double scale = 2.0;
          private static int created;

          private double scaled(double v) { return v * scale; }
          private double twice(double v) { return v * 2; }
          private double area(double r) { return Math.PI * twice(r); }
          private double scaledArea(double r) { return scaled(area(r)); }
          private void count() { created++; }
          private void reset() { scale = 1.0; }
          private final String name() { return "shapes"; }
          private String label() { return name() + created; }
        }
    """)

    def test_marked_methods_touch_no_instance_state(self, staticize):
        result = staticize.run_source(self.SOURCE)
        marked = {c.signature for c in result.changes}
        assert marked == {'twice(double)', 'area(double)', 'count()', 'name()', 'label()'}

        report = result.reports[0]
        for method in report.result.eligible:
            assert method.signature not in report.result.reasons


class TestFiles:

    def test_run_file_does_not_write(self, staticize, tmp_path):
        java_file = tmp_path / "T.java"
        java_file.write_text("class T {\n  private int one() { return 1; }\n}\n")

        result = staticize.run_file(java_file)

        assert result.changed
        assert result.file_path == str(java_file)
        assert "static" not in java_file.read_text()

    def test_run_file_with_other_encoding(self, staticize, tmp_path):
        java_file = tmp_path / "T.java"
        java_file.write_bytes('class T {\n  String s = "é";\n  private int one() { return 1; }\n}\n'.encode('latin-1'))

        result = staticize.run_file(java_file, encoding='latin-1')

        assert 'String s = "é";' in result.source
        assert "private static int one()" in result.source

    def test_missing_file_raises(self, staticize, tmp_path):
        with pytest.raises(SourceReadError):
            staticize.run_file(tmp_path / "Missing.java")

    def test_undecodable_file_raises(self, staticize, tmp_path):
        java_file = tmp_path / "T.java"
        java_file.write_bytes(b"class T { String s = \"\xff\xfe\"; }")
        with pytest.raises(SourceReadError):
            staticize.run_file(java_file, encoding='utf-8')
