"""Decoding of length-prefixed symbol names found in .globl directives.

Compilers emit C++ symbols in a compressed form where every identifier
fragment is preceded by its length in decimal, e.g. ``_ZN4Simd4Avx27ReduceEPKh``.
Decoding concatenates the fragments: ``SimdAvx2Reduce``.
"""

import re
from typing import Iterable, List, Tuple

FIRST_DIGIT = re.compile(r"\d")
LENGTH_PREFIX = re.compile(r"\d+")


def _decode_fragment(token: str, pos: int) -> Tuple[int, str]:
    """Decode one ``<digits><chars>`` fragment starting at pos.

    Returns the number of characters consumed and the fragment. Zero consumed
    means no length prefix starts at pos.
    """
    prefix = LENGTH_PREFIX.match(token, pos)
    if prefix is None:
        return 0, ""

    digits = prefix.group()
    length = int(digits)
    start = prefix.end()
    # A length running past the end of the token yields what remains
    fragment = token[start : start + length]
    return len(digits) + length, fragment


def decode_symbol_name(token: str) -> str:
    """
    Decode a length-prefixed symbol token into a plain identifier.

    Decoding starts at the first digit and stops at the first position that
    has no length prefix; whatever follows is dropped. A token without any
    digit decodes to the empty string.

    Args:
        token: The operand of a .globl directive

    Returns:
        Concatenation of all decoded fragments
    """
    first = FIRST_DIGIT.search(token)
    if first is None:
        return ""

    fragments: List[str] = []
    pos = first.start()
    while pos < len(token):
        size, fragment = _decode_fragment(token, pos)
        if size == 0:
            break
        fragments.append(fragment)
        pos += size

    return "".join(fragments)


def encode_symbol_name(fragments: Iterable[str]) -> str:
    """Length-prefix each fragment, the inverse of decode_symbol_name."""
    return "".join(f"{len(fragment)}{fragment}" for fragment in fragments)
