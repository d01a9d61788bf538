"""Terminal-safe output and logging setup.

Detects whether the terminal can render UTF-8 and provides ASCII
alternatives for the icons File Scavenger prints, plus the RichHandler-based
logging configuration used by the CLI.
"""
import locale
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler


# Unicode to ASCII icon mapping for terminals without UTF-8
ICON_MAP = {
    '✓': '[OK]',
    '✔': '[OK]',
    '✗': '[X]',
    '✘': '[X]',
    '⚠': '[WARN]',
    '→': '->',
    '←': '<-',
    '…': '...',
    '•': '*',
    '🧹': '[scavenger]',
    '📁': '[dir]',
    '📄': '[file]',
    '🗑': '[trash]',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding.

    Returns:
        Lower-cased encoding name ('utf-8', 'cp1252', 'ascii', ...)
    """
    if getattr(sys.stdout, 'encoding', None):
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (ValueError, LookupError):
        return 'ascii'


def is_utf8_capable() -> bool:
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if the terminal lacks UTF-8."""
    if is_utf8_capable():
        return text

    for unicode_char, ascii_replacement in ICON_MAP.items():
        text = text.replace(unicode_char, ascii_replacement)
    return text


def setup_logging(verbose: bool = False, console=None):
    """Route the ``src`` loggers through Rich.

    Args:
        verbose: Log at DEBUG instead of WARNING
        console: Rich console to render to (default: stderr)
    """
    handler = RichHandler(console=console or Console(stderr=True), show_path=verbose, rich_tracebacks=True,
                          markup=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger("src")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False
