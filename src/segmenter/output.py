"""Output formatting for segmented subroutines."""

from typing import List, Optional, Sequence

from .metadata import Subroutine


class SubroutineFormatter:
    """Formats subroutines back into annotated assembly text."""

    def __init__(self, indent: str = "    ", mark_epilogue: bool = True):
        self.indent = indent
        self.mark_epilogue = mark_epilogue

    def format(self, subroutines: Sequence[Subroutine]) -> str:
        lines: List[str] = []

        for sub in subroutines:
            lines.extend(self._format_subroutine(sub))
            lines.append("")

        return "\n".join(lines) + "\n" if lines else ""

    def _format_subroutine(self, sub: Subroutine) -> List[str]:
        lines: List[str] = [self._format_header(sub)]

        for index, line in enumerate(sub.body):
            if self.mark_epilogue and index == sub.epilogue.start:
                lines.append(f"{self.indent}# epilogue")
            lines.append(self._format_line(line))

        return lines

    def _format_header(self, sub: Subroutine) -> str:
        name = sub.name or "<anonymous>"
        header = f"{name}:  # line {sub.start_line}"
        if sub.prologue.length:
            header += f", prologue of {sub.prologue.length} stripped"
        return header

    def _format_line(self, line: str) -> str:
        stripped = line.strip()
        if not stripped:
            return ""
        # Labels stay flush left
        if stripped.endswith(":") and not line[:1].isspace():
            return stripped
        return f"{self.indent}{stripped}"


def format_subroutines(
    subroutines: Sequence[Subroutine], formatter: Optional[SubroutineFormatter] = None
) -> str:
    formatter = formatter or SubroutineFormatter()
    return formatter.format(subroutines)
