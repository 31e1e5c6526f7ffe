"""Segmenter package public API."""

from .config import ErrorKind, SegmentationError, SegmenterConfig
from .core import (
    Segmenter,
    resolve_body,
    scan_globals,
    segment,
    segment_file,
    segment_listing,
    segment_source,
)
from .frame import Epilogue, Prologue, extract_epilogue, measure_prologue
from .metadata import (
    GlobalSymbol,
    SegmentationResult,
    Subroutine,
    error_to_dict,
    metadata_to_json,
    subroutines_to_dict,
)
from .names import decode_symbol_name, encode_symbol_name
from .output import SubroutineFormatter, format_subroutines

__all__ = [
    "Epilogue",
    "ErrorKind",
    "GlobalSymbol",
    "Prologue",
    "SegmentationError",
    "SegmentationResult",
    "Segmenter",
    "SegmenterConfig",
    "Subroutine",
    "SubroutineFormatter",
    "decode_symbol_name",
    "encode_symbol_name",
    "error_to_dict",
    "extract_epilogue",
    "format_subroutines",
    "measure_prologue",
    "metadata_to_json",
    "resolve_body",
    "scan_globals",
    "segment",
    "segment_file",
    "segment_listing",
    "segment_source",
    "subroutines_to_dict",
]
