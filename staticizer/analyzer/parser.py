"""Tree-sitter parser for Java compilation units."""
from pathlib import Path
from tree_sitter import Language, Parser, Tree
import tree_sitter_java as tsjava

from ..errors import SourceReadError


class JavaParser:
    """Java parser using the tree-sitter v0.25+ API."""

    SUPPORTED_EXTENSIONS = {'.java'}

    def __init__(self):
        self.language = 'java'
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Factory method using tree-sitter v0.25+ API.

        CRITICAL: tree_sitter_java.language() returns a PyCapsule which must be
        wrapped with Language() before handing it to Parser().

        Returns:
            Configured Parser instance
        """
        return Parser(Language(tsjava.language()))

    def parse_source(self, source_code: bytes | str) -> Tree:
        """Parse in-memory source.

        Args:
            source_code: Java source as bytes (preferred) or text

        Returns:
            Parsed Tree (tree-sitter never fails outright; syntax errors
            show up as ERROR / MISSING nodes)
        """
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')
        return self.parser.parse(source_code)

    def read_source(self, file_path: str | Path, encoding: str = 'utf-8') -> bytes:
        """Read a source file and normalize it to UTF-8 bytes.

        Args:
            file_path: Path to a .java file
            encoding: Encoding the file is stored in

        Returns:
            UTF-8 encoded source bytes

        Raises:
            SourceReadError: If the file is missing, unreadable or not decodable
        """
        file_path = Path(file_path)
        try:
            raw = file_path.read_bytes()
        except OSError as e:
            raise SourceReadError(f"Cannot read {file_path}: {e}") from e

        try:
            return raw.decode(encoding).encode('utf-8')
        except UnicodeDecodeError as e:
            raise SourceReadError(f"Cannot decode {file_path} as {encoding}: {e}") from e

    @classmethod
    def supports(cls, file_path: str | Path) -> bool:
        """Check whether a path looks like a Java source file."""
        return Path(file_path).suffix.lower() in cls.SUPPORTED_EXTENSIONS
