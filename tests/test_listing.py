from pathlib import Path

from listing import (
    UNCONDITIONAL_JUMP,
    classify_jump,
    classify_label,
    is_comment_only,
    is_return,
    read_listing,
    strip_comments,
)


def test_strip_trailing_comment() -> None:
    assert strip_comments("\tmov\teax, 1 ## set result") == ("\tmov\teax, 1", False)
    assert strip_comments("\tmovl $1, %eax # set result") == ("\tmovl $1, %eax", False)


def test_comment_only_lines() -> None:
    assert strip_comments("## %bb.0:") == ("", True)
    assert strip_comments("    # BB#1:") == ("", True)
    assert is_comment_only("; padding")
    assert not is_comment_only("")
    assert not is_comment_only("\tret")


def test_comment_marker_inside_string_is_kept() -> None:
    line = '\t.asciz\t"a#b" # literal'
    assert strip_comments(line) == ('\t.asciz\t"a#b"', False)


def test_classify_local_labels() -> None:
    assert classify_label(".LBB0_3:") == ("LBB0_3:", "LBB0_3")
    assert classify_label("LBB12_1:  ## loop") == ("LBB12_1:  ## loop", "LBB12_1")
    assert classify_label(".L5:") == ("L5:", "L5")


def test_function_labels_are_not_local() -> None:
    assert classify_label("foo:")[1] == ""
    assert classify_label(".Lfunc_end0:")[1] == ""
    assert classify_label("\tmov\teax, 1")[1] == ""


def test_classify_jumps() -> None:
    assert classify_jump("\tjne\t.LBB0_2") == ("\tJNE LBB0_2", "JNE", "LBB0_2")
    assert classify_jump("\tjmp\tLBB1_4") == ("\tJMP LBB1_4", UNCONDITIONAL_JUMP, "LBB1_4")


def test_jump_to_non_local_target_has_no_label() -> None:
    _, mnemonic, target = classify_jump("\tjmp\tmemcpy")
    assert mnemonic == "JMP"
    assert target == ""

    _, mnemonic, target = classify_jump("\tjmp\trax")
    assert mnemonic == "JMP"
    assert target == ""


def test_non_jump_line() -> None:
    assert classify_jump("\tmov\teax, 1") == ("\tmov\teax, 1", "", "")


def test_return_recognition() -> None:
    assert is_return("\tret")
    assert is_return("  retq")
    assert not is_return("return_value:")
    assert not is_return("\tRET")
    assert not is_return("\tmov\teax, ret")


def test_read_listing(tmp_path: Path) -> None:
    path = tmp_path / "unit.s"
    path.write_text(".globl 3foo\nfoo:\n\tret\n", "utf-8")
    assert read_listing(path) == [".globl 3foo", "foo:", "\tret"]


def test_sized_unconditional_jump() -> None:
    assert classify_jump("\tjmpq\t*%rax") == ("\tJMP *%rax", "JMP", "")
    assert classify_jump("\tjmpl\t.L4")[1:] == ("JMP", "L4")


def test_jump_with_spaced_operand() -> None:
    _, mnemonic, target = classify_jump("\tjmp\tqword ptr [8*rax + .LJTI0_0]")
    assert mnemonic == UNCONDITIONAL_JUMP
    assert target == ""


def test_read_listing_replaces_undecodable_bytes(tmp_path: Path) -> None:
    path = tmp_path / "unit.s"
    path.write_bytes(b".globl 3foo\nfoo:\t# \xff\xfe\n\tret\n")
    lines = read_listing(path)
    assert lines[1] == "foo:\t# \ufffd\ufffd"
