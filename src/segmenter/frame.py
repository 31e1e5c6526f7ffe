"""Stack frame setup and teardown classification.

Recognizes the calling-convention boilerplate that surrounds a function body:
the prologue (register pushes, frame pointer setup, stack allocation and
alignment) and the epilogue (the mirror image, ending in the return).
Both Intel (``sub rsp, 24``) and AT&T (``subq $24, %rsp``) spellings are
accepted, for 32- and 64-bit registers.
"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import List, Optional, Sequence, Tuple
import re

from listing import is_comment_only, is_return, strip_comments

from .config import ErrorKind, SegmentationError


class FrameOp(Enum):
    PUSH = auto()  # push rbx
    POP = auto()  # pop rbx
    SET_FRAME = auto()  # mov rbp, rsp
    RESTORE_FRAME = auto()  # mov rsp, rbp / lea rsp, [rbp - 40]
    LEAVE = auto()
    ALLOCATE = auto()  # sub rsp, 24
    RELEASE = auto()  # add rsp, 24
    ALIGN = auto()  # and rsp, -32
    VZEROUPPER = auto()
    RETURN = auto()


PROLOGUE_OPS = frozenset(
    {FrameOp.PUSH, FrameOp.SET_FRAME, FrameOp.ALLOCATE, FrameOp.ALIGN}
)

EPILOGUE_OPS = frozenset(
    {
        FrameOp.POP,
        FrameOp.RESTORE_FRAME,
        FrameOp.LEAVE,
        FrameOp.RELEASE,
        FrameOp.VZEROUPPER,
        FrameOp.RETURN,
    }
)

_REG = r"%?(?P<reg>[a-z][a-z0-9]*)"
# Hex, octal (leading zero) or decimal, as GAS reads them
_NUM = r"(?P<num>-?(?:0x[0-9a-f]+|0[0-7]*|[1-9][0-9]*))"

# Instruction shapes, checked in order against a comment-free line
FRAME_PATTERNS = [
    (rf"^\s*push[lqw]?\s+{_REG}\s*$", FrameOp.PUSH),
    (rf"^\s*pop[lqw]?\s+{_REG}\s*$", FrameOp.POP),
    # Intel: destination first, bare registers and immediates
    (r"^\s*mov\s+[re]bp\s*,\s*[re]sp\s*$", FrameOp.SET_FRAME),
    (r"^\s*mov\s+[re]sp\s*,\s*[re]bp\s*$", FrameOp.RESTORE_FRAME),
    (r"^\s*lea\s+[re]sp\s*,\s*\[.*\]\s*$", FrameOp.RESTORE_FRAME),
    (rf"^\s*sub\s+[re]sp\s*,\s*{_NUM}\s*$", FrameOp.ALLOCATE),
    (rf"^\s*add\s+[re]sp\s*,\s*{_NUM}\s*$", FrameOp.RELEASE),
    (rf"^\s*and\s+[re]sp\s*,\s*{_NUM}\s*$", FrameOp.ALIGN),
    # AT&T: source first, optional size suffix
    (r"^\s*mov[lq]?\s+%[re]sp\s*,\s*%[re]bp\s*$", FrameOp.SET_FRAME),
    (r"^\s*mov[lq]?\s+%[re]bp\s*,\s*%[re]sp\s*$", FrameOp.RESTORE_FRAME),
    (r"^\s*lea[lq]?\s+\S*\(%[re]bp\)\s*,\s*%[re]sp\s*$", FrameOp.RESTORE_FRAME),
    (rf"^\s*sub[lq]?\s+\${_NUM}\s*,\s*%[re]sp\s*$", FrameOp.ALLOCATE),
    (rf"^\s*add[lq]?\s+\${_NUM}\s*,\s*%[re]sp\s*$", FrameOp.RELEASE),
    (rf"^\s*and[lq]?\s+\${_NUM}\s*,\s*%[re]sp\s*$", FrameOp.ALIGN),
    (r"^\s*leave[lq]?\s*$", FrameOp.LEAVE),
    (r"^\s*vzeroupper\s*$", FrameOp.VZEROUPPER),
]

_COMPILED_PATTERNS = [(re.compile(pattern), op) for pattern, op in FRAME_PATTERNS]


@dataclass(frozen=True)
class FrameInstruction:
    """A recognized frame setup or teardown instruction."""

    op: FrameOp
    register: str = ""
    amount: int = 0


@dataclass(frozen=True)
class Epilogue:
    """
    Teardown run ending at the return instruction.

    start/end are body-relative and half-open; end is one past the return.
    """

    start: int
    end: int
    pops: Tuple[str, ...] = ()
    stack_size: int = 0
    restores_frame: bool = False
    vzeroupper: bool = False

    def shifted(self, offset: int) -> "Epilogue":
        return replace(self, start=self.start + offset, end=self.end + offset)

    def __len__(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Prologue:
    """Setup run stripped from the start of a body."""

    length: int = 0
    pushes: Tuple[str, ...] = ()
    stack_size: int = 0
    sets_frame: bool = False
    align: int = 0


def classify_frame_instruction(line: str) -> Optional[FrameInstruction]:
    """Match one line against the frame instruction shapes."""
    code, _ = strip_comments(line)
    if is_return(code):
        return FrameInstruction(FrameOp.RETURN)

    code = code.lower()
    for pattern, op in _COMPILED_PATTERNS:
        match = pattern.match(code)
        if match:
            groups = match.groupdict()
            register = groups.get("reg") or ""
            amount = _parse_immediate(groups["num"]) if groups.get("num") else 0
            return FrameInstruction(op, register=register, amount=amount)

    return None


def _parse_immediate(value: str) -> int:
    """Parse a numeric operand the way the assembler does."""
    sign = -1 if value.startswith("-") else 1
    digits = value.lstrip("-")
    if digits.startswith("0x"):
        return sign * int(digits, 16)
    if len(digits) > 1 and digits.startswith("0"):
        return sign * int(digits, 8)
    return sign * int(digits)


def is_epilogue_instruction(line: str) -> bool:
    instr = classify_frame_instruction(line)
    return instr is not None and instr.op in EPILOGUE_OPS


def is_prologue_instruction(line: str) -> bool:
    instr = classify_frame_instruction(line)
    return instr is not None and instr.op in PROLOGUE_OPS


def extract_epilogue(body: Sequence[str], base_line: int = 0) -> Epilogue:
    """
    Locate the epilogue preceding the first return in a body.

    Args:
        body: Closed subroutine body
        base_line: Listing index of body[0], used for error reporting

    Returns:
        Epilogue with body-relative range and teardown details

    Raises:
        SegmentationError: If the body has no return instruction
    """
    for ret_index, line in enumerate(body):
        if not is_return(line):
            continue

        start = ret_index
        while start > 0 and is_epilogue_instruction(body[start - 1]):
            start -= 1

        return _describe_epilogue(body, start, ret_index + 1)

    raise SegmentationError(
        ErrorKind.MISSING_RETURN, "No return instruction in body", base_line
    )


def _describe_epilogue(body: Sequence[str], start: int, end: int) -> Epilogue:
    pops: List[str] = []
    stack_size = 0
    restores_frame = False
    vzeroupper = False

    for line in body[start:end]:
        instr = classify_frame_instruction(line)
        if instr is None:
            continue
        if instr.op == FrameOp.POP:
            pops.append(instr.register)
        elif instr.op == FrameOp.RELEASE:
            stack_size += instr.amount
        elif instr.op in (FrameOp.RESTORE_FRAME, FrameOp.LEAVE):
            restores_frame = True
        elif instr.op == FrameOp.VZEROUPPER:
            vzeroupper = True

    return Epilogue(
        start=start,
        end=end,
        pops=tuple(pops),
        stack_size=stack_size,
        restores_frame=restores_frame,
        vzeroupper=vzeroupper,
    )


def measure_prologue(body: Sequence[str]) -> Prologue:
    """
    Measure the setup run at the start of a body.

    Comment-only lines are transparent: they neither end the run nor count as
    setup, but any that precede the first body instruction are dropped along
    with it.

    Returns:
        Prologue whose length is the index of the first instruction that is
        not prologue-shaped
    """
    pushes: List[str] = []
    stack_size = 0
    sets_frame = False
    align = 0

    length = len(body)
    for index, line in enumerate(body):
        if is_comment_only(line):
            continue

        instr = classify_frame_instruction(line)
        if instr is None or instr.op not in PROLOGUE_OPS:
            length = index
            break

        if instr.op == FrameOp.PUSH:
            pushes.append(instr.register)
        elif instr.op == FrameOp.ALLOCATE:
            stack_size += instr.amount
        elif instr.op == FrameOp.SET_FRAME:
            sets_frame = True
        elif instr.op == FrameOp.ALIGN:
            align = abs(instr.amount)

    return Prologue(
        length=length,
        pushes=tuple(pushes),
        stack_size=stack_size,
        sets_frame=sets_frame,
        align=align,
    )
