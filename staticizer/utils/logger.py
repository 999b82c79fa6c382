"""Terminal-safe output and the project logger.

Detects terminal encoding and provides ASCII alternatives for the few Unicode
glyphs Staticizer prints, so non UTF-8 terminals (legacy Windows consoles, CI
log collectors) never crash on output. Log records are rendered by Rich on
stderr.
"""
import locale
import logging
import sys


# Unicode to ASCII replacements for non UTF-8 terminals
ICON_MAP = {
    '✓': '[OK]',
    '✔': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '←': '<-',
    '⇒': '=>',
    '…': '...',
    '•': '*',
    '│': '|',
    '─': '-',
}

LOGGER_NAME = "staticizer"


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (LookupError, ValueError):
        return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode glyphs with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode glyphs

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)
    return sanitized


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Attach a Rich handler to the project logger (once) and set its level.

    Args:
        level: Level name, e.g. 'DEBUG' or 'WARNING'

    Returns:
        The configured 'staticizer' logger
    """
    from rich.logging import RichHandler
    from .console import SafeConsole

    root = logging.getLogger(LOGGER_NAME)
    if not any(isinstance(handler, RichHandler) for handler in root.handlers):
        handler = RichHandler(
            console=SafeConsole(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        root.addHandler(handler)
    root.setLevel(level)
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a child of the project logger.

    Args:
        name: Usually __name__ of the calling module

    Returns:
        Logger under the 'staticizer' hierarchy
    """
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
