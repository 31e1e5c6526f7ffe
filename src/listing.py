"""
asmsplit line classifier - per-line helpers for compiler assembly listings.
Reports whether a line is comment-only, defines a local label, or jumps.
"""

from pathlib import Path
from typing import List, Tuple
import re


# The one jump mnemonic that always transfers control
UNCONDITIONAL_JUMP = "JMP"

# Basic-block labels as emitted by clang (.LBB0_3 on ELF, LBB0_3 on Mach-O)
# and by gcc (.L5). Function markers such as .Lfunc_end0 or .LFB0 are not
# matched.
LOCAL_LABEL = r"\.?(?:LBB\d+_\d+|L\d+)"

LABEL_DEFINITION = re.compile(rf"^\s*(?P<label>{LOCAL_LABEL})\s*:")
LOCAL_LABEL_OPERAND = re.compile(rf"^{LOCAL_LABEL}$")

# Any j* mnemonic followed by its operand (which may hold spaces, as in
# "jmp qword ptr [8*rax + .LJTI0_0]")
JUMP = re.compile(
    r"^(?P<indent>\s*)(?P<mnemonic>j[a-z]+)\s+(?P<operand>.+?)\s*$"
)
SIZED_UNCONDITIONAL_JUMP = re.compile(r"^JMP[LQW]$")

# First non-blank token is ret (retq/retl/retw in AT&T spelling)
RETURN = re.compile(r"^\s*ret[lqw]?\b")

# Either a quoted string (skipped) or the start of a trailing comment
COMMENT_OR_STRING = re.compile(r'"(?:[^"\\]|\\.)*"|(?P<marker>##?|;|//)')


def strip_comments(line: str) -> Tuple[str, bool]:
    """
    Remove a trailing comment from a line.

    Args:
        line: One raw listing line

    Returns:
        The line without its comment (right-trimmed) and whether the whole
        line was a comment. Blank lines are not comment-only.
    """
    for match in COMMENT_OR_STRING.finditer(line):
        if match.group("marker") is None:
            continue
        code = line[: match.start()]
        if code.strip() == "":
            return "", True
        return code.rstrip(), False
    return line.rstrip(), False


def is_comment_only(line: str) -> bool:
    return strip_comments(line)[1]


def classify_label(line: str) -> Tuple[str, str]:
    """
    Detect a local label definition.

    Returns:
        The line with the label's leading dot dropped, and the label name
        (without dot or colon), or an empty string when the line defines no
        local label.
    """
    match = LABEL_DEFINITION.match(line)
    if not match:
        return line, ""

    raw = match.group("label")
    label = raw.lstrip(".")
    start, end = match.span("label")
    return line[:start] + label + line[end:], label


def classify_jump(line: str) -> Tuple[str, str, str]:
    """
    Detect a jump instruction.

    Returns:
        (normalized line, uppercased mnemonic, target label). The mnemonic is
        empty when the line is not a jump. The target is empty for operands
        that are not local labels (tail calls, indirect jumps through
        registers or memory).
    """
    match = JUMP.match(line)
    if not match:
        return line, "", ""

    mnemonic = match.group("mnemonic").upper()
    if SIZED_UNCONDITIONAL_JUMP.match(mnemonic):
        mnemonic = UNCONDITIONAL_JUMP
    operand = match.group("operand")

    target = ""
    if LOCAL_LABEL_OPERAND.match(operand):
        target = operand.lstrip(".")
        operand = target

    return f"{match.group('indent')}{mnemonic} {operand}", mnemonic, target


def is_return(line: str) -> bool:
    """Check whether the line's first token is the return mnemonic."""
    return RETURN.match(line) is not None


def split_listing(source: str) -> List[str]:
    """
    Split listing text into lines.

    Args:
        source: Full text of one translation unit's assembly

    Returns:
        List of lines without line terminators
    """
    return source.splitlines()


def read_listing(filepath: Path) -> List[str]:
    """
    Read an assembly listing from disk.

    Args:
        filepath: Path to the .s file

    Returns:
        List of lines; bytes that are not UTF-8 (string data, comments)
        become U+FFFD
    """
    with open(filepath, "r", encoding="utf-8", errors="replace") as f:
        source = f.read()
    return split_listing(source)
