"""Records produced by segmentation and their JSON summary."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Dict, List, Optional, Tuple

from .config import SegmentationError
from .frame import Epilogue, Prologue


@dataclass(frozen=True)
class GlobalSymbol:
    """A .globl directive and the line defining its label."""

    directive_line: int
    name: str
    label_line: int
    token: str = ""


@dataclass(frozen=True)
class Subroutine:
    """One function's body with its prologue stripped."""

    name: str
    body: Tuple[str, ...]
    epilogue: Epilogue
    prologue: Prologue = field(default_factory=Prologue)
    start_line: int = 0

    @property
    def epilogue_lines(self) -> Tuple[str, ...]:
        return self.body[self.epilogue.start : self.epilogue.end]


@dataclass
class SegmentationResult:
    """Either every subroutine of a listing, or the fault that stopped it."""

    subroutines: List[Subroutine] = field(default_factory=list)
    error: Optional[SegmentationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> List[Subroutine]:
        if self.error is not None:
            raise self.error
        return self.subroutines


def metadata_to_json(subroutines: List[Subroutine]) -> str:
    """Serialize segmented subroutines to JSON."""

    return json.dumps(subroutines_to_dict(subroutines), indent=2)


def subroutines_to_dict(subroutines: List[Subroutine]) -> Dict[str, Any]:
    """Convert subroutines to a JSON-serializable dict."""

    entries: List[Dict[str, Any]] = []
    for sub in subroutines:
        entries.append(
            {
                "name": sub.name,
                "start_line": sub.start_line,
                "body": list(sub.body),
                "epilogue": {
                    "start": sub.epilogue.start,
                    "end": sub.epilogue.end,
                    "pops": list(sub.epilogue.pops),
                    "stack_size": sub.epilogue.stack_size,
                    "restores_frame": sub.epilogue.restores_frame,
                    "vzeroupper": sub.epilogue.vzeroupper,
                },
                "prologue": {
                    "length": sub.prologue.length,
                    "pushes": list(sub.prologue.pushes),
                    "stack_size": sub.prologue.stack_size,
                    "sets_frame": sub.prologue.sets_frame,
                    "align": sub.prologue.align,
                },
            }
        )

    total_lines = sum(len(e["body"]) for e in entries)
    return {
        "subroutines": entries,
        "statistics": {
            "subroutine_count": len(entries),
            "total_body_lines": total_lines,
            "average_body_lines": round(total_lines / max(len(entries), 1), 1),
        },
    }


def error_to_dict(error: SegmentationError) -> Dict[str, Any]:
    return {"kind": error.kind.name, "line": error.line, "message": error.message}
