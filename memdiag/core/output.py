"""Human-readable formatting and the report buffer sections write to."""

import re

RED = "\033[0;31m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[0;34m"
MAGENTA = "\033[0;35m"
CYAN = "\033[0;36m"
RESET = "\033[0m"

IEC_UNITS = ["B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB"]

_SIZE_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*([KMGTPE]i?B|B)?\s*$")

KEY_WIDTH = 30
VALUE_WIDTH = 8

NOT_AVAILABLE = "N/A"


def human_size(num_bytes: int | float) -> str:
    """
    Format a byte count with IEC units and one decimal place.

    Examples: 512 -> "512 B", 1536 -> "1.5 KiB", 17179869184 -> "16.0 GiB"
    """
    value = float(num_bytes)
    if abs(value) < 1024:
        return f"{int(value)} B"
    for unit in IEC_UNITS[1:]:
        value /= 1024
        if abs(value) < 1024 or unit == IEC_UNITS[-1]:
            return f"{value:.1f} {unit}"
    return f"{value:.1f} {IEC_UNITS[-1]}"


def parse_size(text: str) -> int:
    """
    Parse a size produced by human_size() back into bytes.

    Raises:
        ValueError: If the text isn't a number with an optional IEC unit
    """
    m = _SIZE_RE.match(text)
    if not m:
        raise ValueError(f"Invalid size: {text!r}")
    unit = m.group(2) or "B"
    if unit not in IEC_UNITS:
        # "KB"/"MB" are accepted as their binary counterparts
        unit = unit[0] + "iB"
    return int(round(float(m.group(1)) * 1024 ** IEC_UNITS.index(unit)))


def human_kib(kib: int) -> str:
    """Format a kB figure from ps or /proc the way the process table shows it."""
    if kib >= 1024 * 1024:
        return f"{kib / (1024 * 1024):.1f} GiB"
    elif kib >= 1024:
        return f"{kib / 1024:.1f} MiB"
    else:
        return f"{kib} KiB"


def percent_color(percent: float) -> str:
    """ANSI color for a usage percentage: red >= 90, yellow >= 70, else green."""
    if percent >= 90:
        return RED
    if percent >= 70:
        return YELLOW
    return GREEN


def truncate(text: str, width: int) -> str:
    """Shorten text to width characters, marking the cut with '...'."""
    if len(text) > width:
        return text[:width - 3] + "..."
    return text


class Report:
    """
    Buffer for one report pass.

    Sections append formatted lines; sources that couldn't be read are
    recorded in ``unavailable`` so the driver can log them.
    """

    def __init__(self, color: bool = True):
        self.color = color
        self.lines: list[str] = []
        self.unavailable: list[str] = []
        self.warnings: list[str] = []

    def paint(self, text: str, color: str) -> str:
        """Wrap text in an ANSI color when color output is enabled."""
        if not self.color:
            return text
        return f"{color}{text}{RESET}"

    def line(self, text: str = "") -> None:
        self.lines.append(text)

    def header(self, title: str) -> None:
        """Section header: ===== TITLE ====="""
        self.line(self.paint(f"===== {title} =====", YELLOW))

    def banner(self, title: str) -> None:
        self.line(self.paint(f"=== {title} ===", MAGENTA))

    def comment(self, text: str) -> None:
        """Explanatory note printed as '# text'."""
        self.line(self.paint(f"# {text}", CYAN))

    def metric(self, key: str, value: str, note: str = "") -> None:
        """Three-column row: right-aligned key and value, free-form note."""
        self.line(f"{key:>{KEY_WIDTH}} {value:>{VALUE_WIDTH}} {note}".rstrip())

    def percent(self, value: float) -> str:
        """Percentage colored by severity."""
        return self.paint(f"{value:.1f}%", percent_color(value))

    def table(self, columns: list[tuple[str, int, str]], rows: list[list[str]]) -> None:
        """
        Aligned table.

        Args:
            columns: (title, width, align) tuples; align is "<" or ">".
                A width of 0 leaves the column unpadded.
            rows: Cell values, one list per row
        """
        def fmt(cells: list[str]) -> str:
            parts = []
            for (_, width, align), cell in zip(columns, cells):
                parts.append(f"{cell:{align}{width}}" if width else cell)
            return " ".join(parts).rstrip()

        self.line(fmt([title for title, _, _ in columns]))
        for row in rows:
            self.line(fmt(row))

    def ok(self, text: str) -> None:
        self.line(self.paint(f"✓ {text}", GREEN))

    def critical(self, text: str, detail: str = "") -> None:
        """[CRITICAL] marker followed by an optional plain detail."""
        marker = self.paint(f"[CRITICAL] {text}", RED)
        self.line(f"{marker} - {detail}" if detail else marker)
        self.warnings.append(text)

    def warning(self, text: str, detail: str = "") -> None:
        """[WARNING] marker followed by an optional plain detail."""
        marker = self.paint(f"[WARNING] {text}", YELLOW)
        self.line(f"{marker} - {detail}" if detail else marker)
        self.warnings.append(text)

    def alert(self, text: str) -> None:
        """Prominent red message without a severity marker."""
        self.line(self.paint(text, RED))

    def notice(self, text: str) -> None:
        """Prominent yellow message without a severity marker."""
        self.line(self.paint(text, YELLOW))

    def not_available(self, what: str, reason: str | None = None) -> None:
        """Explicit marker for a source that couldn't be read."""
        self.line(f"{what} not available")
        self.unavailable.append(f"{what}: {reason}" if reason else what)

    def render(self) -> str:
        return "\n".join(self.lines)
