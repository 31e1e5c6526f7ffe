"""Splits an assembly listing into per-function subroutines."""

from dataclasses import dataclass
import logging
from typing import FrozenSet, List, Optional, Sequence, Tuple

from listing import (
    UNCONDITIONAL_JUMP,
    classify_jump,
    classify_label,
    is_return,
    read_listing,
    split_listing,
    strip_comments,
)

from .config import ErrorKind, SegmentationError, SegmenterConfig
from .frame import Prologue, extract_epilogue, measure_prologue
from .metadata import GlobalSymbol, SegmentationResult, Subroutine
from .names import decode_symbol_name

logger = logging.getLogger(__name__)

GLOBL_DIRECTIVE = ".globl"


def _find_label(listing: Sequence[str], label: str, start: int) -> Optional[int]:
    definition = label + ":"
    for index in range(start, len(listing)):
        if listing[index].strip().startswith(definition):
            return index
    return None


def scan_globals(listing: Sequence[str]) -> List[GlobalSymbol]:
    """
    Locate every .globl directive and the label it exports.

    Args:
        listing: Full listing lines

    Returns:
        One GlobalSymbol per directive, in file order

    Raises:
        SegmentationError: If a declared symbol's label is never defined
    """
    symbols: List[GlobalSymbol] = []

    for index, line in enumerate(listing):
        code, _ = strip_comments(line)
        if GLOBL_DIRECTIVE not in code:
            continue

        token = code.split(GLOBL_DIRECTIVE, 1)[1].strip()
        name = decode_symbol_name(token)

        label_line = None
        if name:
            label_line = _find_label(listing, name, index)
        if label_line is None and token:
            # Compilers define the label under the raw, encoded symbol
            label_line = _find_label(listing, token, index)
        if label_line is None:
            raise SegmentationError(
                ErrorKind.MISSING_LABEL,
                f"Failed to find label for {token!r}",
                index,
            )

        symbols.append(
            GlobalSymbol(
                directive_line=index, name=name, label_line=label_line, token=token
            )
        )

    return symbols


@dataclass(frozen=True)
class LabelSnapshot:
    """Labels defined and jumped to within one body window."""

    definitions: Tuple[Tuple[str, int], ...]  # (label, listing line)
    references: FrozenSet[str]

    @property
    def defined(self) -> FrozenSet[str]:
        return frozenset(label for label, _ in self.definitions)

    @property
    def missing(self) -> FrozenSet[str]:
        return self.references - self.defined

    @property
    def unreferenced(self) -> Tuple[Tuple[str, int], ...]:
        return tuple(d for d in self.definitions if d[0] not in self.references)


def collect_labels(listing: Sequence[str], start: int, end: int) -> LabelSnapshot:
    """Snapshot the labels defined and referenced in listing[start:end]."""
    definitions: List[Tuple[str, int]] = []
    references = set()

    for index in range(start, end):
        line, _ = strip_comments(listing[index])
        _, label = classify_label(line)
        if label:
            definitions.append((label, index))
        _, _, target = classify_jump(line)
        if target:
            references.add(target)

    return LabelSnapshot(
        definitions=tuple(definitions), references=frozenset(references)
    )


def find_return(listing: Sequence[str], start: int, limit: int) -> Optional[int]:
    for index in range(start, min(limit, len(listing))):
        if is_return(listing[index]):
            return index
    return None


def extend_window(
    listing: Sequence[str], body_end: int, missing: FrozenSet[str]
) -> int:
    """
    Grow a body past its current end until the missing labels are defined.

    Scans from the body's last line for the definitions of all missing labels,
    then on to the next unconditional jump.

    Returns:
        New end, one past that jump (end of listing when none follows)

    Raises:
        SegmentationError: If the listing ends before every label is found
    """
    pending = missing
    index = body_end - 1
    while pending and index < len(listing):
        line, _ = strip_comments(listing[index])
        _, label = classify_label(line)
        if label in pending:
            pending = pending - {label}
        index += 1

    if pending:
        raise SegmentationError(
            ErrorKind.UNRESOLVED_JUMP,
            f"Jump targets never defined: {', '.join(sorted(pending))}",
            body_end - 1,
        )

    while index < len(listing):
        line, _ = strip_comments(listing[index])
        _, mnemonic, _ = classify_jump(line)
        if mnemonic == UNCONDITIONAL_JUMP:
            return index + 1
        index += 1

    return len(listing)


def resolve_body(
    listing: Sequence[str],
    symbol: GlobalSymbol,
    limit: int,
    config: Optional[SegmenterConfig] = None,
) -> int:
    """
    Find the end of a global's body, closed under local jumps.

    Args:
        listing: Full listing lines
        symbol: The global whose body starts after its label line
        limit: Directive line of the next global, or len(listing)
        config: Segmenter configuration

    Returns:
        Exclusive end of the body; the body is listing[label_line + 1:end]

    Raises:
        SegmentationError: On a missing return, an unreferenced label or a
            jump target that is never defined
    """
    config = config or SegmenterConfig()
    body_start = symbol.label_line + 1

    ret_line = find_return(listing, body_start, limit)
    if ret_line is None:
        raise SegmentationError(
            ErrorKind.MISSING_RETURN,
            f"Failed to find return for {symbol.name or symbol.token!r}",
            symbol.label_line,
        )
    body_end = ret_line + 1

    while config.resolve_closure:
        snapshot = collect_labels(listing, body_start, body_end)

        if not config.allow_unreferenced_labels and snapshot.unreferenced:
            label, line = snapshot.unreferenced[0]
            raise SegmentationError(
                ErrorKind.UNMATCHED_LABEL,
                f"Label {label} is never jumped to within its body",
                line,
            )

        missing = snapshot.missing
        if not missing:
            break

        new_end = extend_window(listing, body_end, missing)
        logger.debug(
            "%s: extending body from line %d to %d for %s",
            symbol.name or symbol.token,
            body_end,
            new_end,
            ", ".join(sorted(missing)),
        )
        body_end = new_end

    return body_end


class Segmenter:
    """
    Splits an assembly listing into subroutines, one per .globl directive.

    Usage:
        segmenter = Segmenter(config)
        subroutines = segmenter.segment(lines)
    """

    def __init__(self, config: Optional[SegmenterConfig] = None):
        self.config = config or SegmenterConfig()

    def segment(self, lines: Sequence[str]) -> List[Subroutine]:
        """
        Segment a listing.

        Raises:
            SegmentationError: On the first structural fault; no partial
                result is produced
        """
        listing = tuple(lines)
        symbols = scan_globals(listing)

        subroutines: List[Subroutine] = []
        for index, symbol in enumerate(symbols):
            if index + 1 < len(symbols):
                limit = symbols[index + 1].directive_line
            else:
                limit = len(listing)
            subroutines.append(self._extract_subroutine(listing, symbol, limit))

        logger.debug("segmented %d subroutines", len(subroutines))
        return subroutines

    def _extract_subroutine(
        self, listing: Tuple[str, ...], symbol: GlobalSymbol, limit: int
    ) -> Subroutine:
        body_start = symbol.label_line + 1
        body_end = resolve_body(listing, symbol, limit, self.config)
        body = listing[body_start:body_end]

        epilogue = extract_epilogue(body, base_line=body_start)
        prologue = measure_prologue(body) if self.config.strip_prologue else Prologue()

        logger.debug(
            "%s: lines %d-%d, prologue %d, epilogue %d",
            symbol.name or symbol.token,
            body_start,
            body_end,
            prologue.length,
            len(epilogue),
        )

        return Subroutine(
            name=symbol.name,
            body=body[prologue.length :],
            epilogue=epilogue.shifted(-prologue.length),
            prologue=prologue,
            start_line=body_start + prologue.length,
        )


def segment(
    lines: Sequence[str], config: Optional[SegmenterConfig] = None
) -> List[Subroutine]:
    """
    Convenience function to segment listing lines.

    Raises:
        SegmentationError: On the first structural fault
    """
    return Segmenter(config).segment(lines)


def segment_listing(
    lines: Sequence[str], config: Optional[SegmenterConfig] = None
) -> SegmentationResult:
    """
    Segment listing lines, reporting faults in the result instead of raising.

    Returns:
        SegmentationResult with either all subroutines or the error
    """
    try:
        return SegmentationResult(subroutines=segment(lines, config))
    except SegmentationError as e:
        logger.debug("segmentation failed: %s", e)
        return SegmentationResult(error=e)


def segment_source(
    source: str, config: Optional[SegmenterConfig] = None
) -> SegmentationResult:
    """Convenience function to segment listing text."""
    return segment_listing(split_listing(source), config)


def segment_file(
    filepath: str, config: Optional[SegmenterConfig] = None
) -> SegmentationResult:
    """Segment an assembly file."""
    return segment_listing(read_listing(filepath), config)
