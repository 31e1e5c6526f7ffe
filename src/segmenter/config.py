"""Segmenter configuration and error types."""

from dataclasses import dataclass
from enum import Enum


@dataclass
class SegmenterConfig:
    """Configuration for the segmenter."""

    resolve_closure: bool = True
    allow_unreferenced_labels: bool = False
    strip_prologue: bool = True


class ErrorKind(Enum):
    """Structural faults that stop segmentation of a listing."""

    MISSING_LABEL = "missing label definition"
    MISSING_RETURN = "missing return"
    UNMATCHED_LABEL = "unmatched label"
    UNRESOLVED_JUMP = "unresolved jump target"


class SegmentationError(Exception):
    def __init__(self, kind: ErrorKind, message: str, line: int = 0):
        self.kind = kind
        self.message = message
        self.line = line
        super().__init__(f"Segmentation error at line {line}: {message}")
