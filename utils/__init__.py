"""
nfs-bench Utilities
Console formatting, colors, and the session-log mirror for console messages.
"""

import re
import sys

# ANSI color codes
COLORS = {
    "HEADER": "\033[95m",
    "BLUE": "\033[94m",
    "CYAN": "\033[96m",
    "GREEN": "\033[92m",
    "YELLOW": "\033[93m",
    "RED": "\033[91m",
    "BOLD": "\033[1m",
    "UNDERLINE": "\033[4m",
    "ENDC": "\033[0m",
}

_ANSI_RE = re.compile(r"\033\[[0-9;]*m")

# Callable receiving every console line (uncolored); set once the session log is open
_log_sink = None


def set_log_sink(sink):
    """Mirror console messages into `sink` (a callable taking one str), or stop with None."""
    global _log_sink
    _log_sink = sink


def strip_colors(text):
    return _ANSI_RE.sub("", text)


def color_text(text, color_name):
    """Apply color to text if output is a terminal"""
    if sys.stdout.isatty() and color_name in COLORS:
        return f"{COLORS[color_name]}{text}{COLORS['ENDC']}"
    return text


def _emit(text=""):
    print(text)
    if _log_sink is not None:
        _log_sink(strip_colors(text) + "\n")


def print_header(title):
    """Print a formatted header with separators"""
    separator = "#" * 60
    _emit()
    _emit(color_text(separator, "BLUE"))
    _emit(color_text(f"# {title.center(56)} #", "BOLD"))
    _emit(color_text(separator, "BLUE"))
    _emit()


def print_subheader(title):
    """Print a subheader with separators"""
    separator = "-" * 60
    _emit()
    _emit(color_text(separator, "CYAN"))
    _emit(color_text(f"| {title.center(56)} |", "BOLD"))
    _emit(color_text(separator, "CYAN"))
    _emit()


def print_section(title):
    """Print a section separator, e.g. '=== fio Random IOPS ==='"""
    _emit()
    _emit(color_text(f"=== {title} ===", "GREEN"))


def print_warning(message):
    """Print a warning message"""
    _emit(color_text(f"! WARNING: {message}", "YELLOW"))


def print_error(message):
    """Print an error message"""
    _emit(color_text(f"! ERROR: {message}", "RED"))


def print_info(message):
    """Print an informational message"""
    _emit(color_text(f"* {message}", "CYAN"))


def print_success(message):
    """Print a success message"""
    _emit(color_text(f"✓ {message}", "GREEN"))


def print_bullet(message):
    """Print a bullet point"""
    _emit(color_text(f"• {message}", "ENDC"))


def print_plain(message=""):
    """Print an undecorated line (menu text, tables)."""
    _emit(message)


def format_table(rows, headers=("Field", "Value")):
    """
    Render rows of (field, value) pairs as a 'Field | Value' table.

    Returns:
        str: Uncolored table text, one row per line.
    """
    rows = [(str(field), str(value)) for field, value in rows]
    field_width = max([len(headers[0])] + [len(r[0]) for r in rows])
    value_width = max([len(headers[1])] + [len(r[1]) for r in rows])

    lines = [
        f"{headers[0].ljust(field_width)} | {headers[1]}",
        f"{'-' * field_width}-+-{'-' * value_width}",
    ]
    for field, value in rows:
        lines.append(f"{field.ljust(field_width)} | {value.ljust(value_width)}".rstrip())
    return "\n".join(lines)


def format_size(num_bytes):
    """Format a byte count as a human-readable IEC string (e.g. '2.00 GiB')."""
    units = ["B", "KiB", "MiB", "GiB", "TiB"]
    size = float(max(num_bytes, 0))
    unit_index = 0
    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1
    if unit_index == 0:
        return f"{int(size)} {units[0]}"
    return f"{size:.2f} {units[unit_index]}"
