from segmenter.names import decode_symbol_name, encode_symbol_name


def test_decodes_length_prefixed_fragments() -> None:
    assert decode_symbol_name("3foo3bar") == "foobar"


def test_decodes_mangled_cpp_symbol() -> None:
    token = "_ZN4Simd4Avx213ReduceGray4x4EPKhmmmPhmmm"
    assert decode_symbol_name(token) == "SimdAvx2ReduceGray4x4"


def test_decoding_starts_at_first_digit() -> None:
    assert decode_symbol_name("__Z3foov") == "foo"


def test_token_without_digits_decodes_to_empty_name() -> None:
    assert decode_symbol_name("main") == ""
    assert decode_symbol_name("") == ""


def test_multi_digit_length() -> None:
    name = "abcdefghijkl"
    assert decode_symbol_name(f"12{name}") == name


def test_trailing_unprefixed_suffix_is_dropped() -> None:
    # Characterized quirk: decoding stops at the first missing length prefix
    # and silently drops the rest of the token.
    assert decode_symbol_name("3fooXYZ4quux") == "foo"


def test_length_past_end_yields_remaining_characters() -> None:
    assert decode_symbol_name("9abc") == "abc"


def test_decode_inverts_encode() -> None:
    fragments = ["Simd", "Avx2", "ReduceGray4x4"]
    encoded = encode_symbol_name(fragments)
    assert encoded == "4Simd4Avx213ReduceGray4x4"
    assert decode_symbol_name(encoded) == "".join(fragments)
