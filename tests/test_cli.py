import json
import subprocess
import sys
from pathlib import Path

MAIN = Path(__file__).resolve().parents[1] / "src" / "main.py"

LISTING = """\
\t.text
\t.globl\t_ZN4Simd4Base3AddEPKh
_ZN4Simd4Base3AddEPKh:
\tpush\trbp
\tmov\trbp, rsp
\ttest\tedi, edi
\tje\t.LBB0_2
\tmov\teax, esi
\tpop\trbp
\tret
.LBB0_2:
\txor\teax, eax
\tpop\trbp
\tjmp\tabort
"""


def _run(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, str(MAIN), *args],
        capture_output=True,
        text=True,
    )


def test_cli_writes_text_output(tmp_path: Path) -> None:
    source = tmp_path / "unit.s"
    source.write_text(LISTING, "utf-8")
    output = tmp_path / "out" / "unit.txt"

    result = _run(str(source), "-o", str(output))

    assert result.returncode == 0, result.stderr
    assert "1 subroutines" in result.stdout
    text = output.read_text("utf-8")
    assert text.startswith("SimdBaseAdd:")
    assert "LBB0_2:" in text


def test_cli_json_summary(tmp_path: Path) -> None:
    source = tmp_path / "unit.s"
    source.write_text(LISTING, "utf-8")

    result = _run(str(source), "--json")

    assert result.returncode == 0, result.stderr
    payload = json.loads(result.stdout)
    entry = payload["subroutines"][0]
    assert entry["name"] == "SimdBaseAdd"
    assert entry["body"][-1] == "\tjmp\tabort"
    assert entry["epilogue"] == {
        "start": 3,
        "end": 5,
        "pops": ["rbp"],
        "stack_size": 0,
        "restores_frame": False,
        "vzeroupper": False,
    }


def test_cli_reports_structural_error(tmp_path: Path) -> None:
    source = tmp_path / "broken.s"
    source.write_text(".globl 3foo\n\tret\n", "utf-8")

    result = _run(str(source), "--json")

    assert result.returncode == 1
    assert "Failed to find label" in result.stderr
    assert json.loads(result.stdout)["error"]["kind"] == "MISSING_LABEL"


def test_cli_missing_input(tmp_path: Path) -> None:
    result = _run(str(tmp_path / "nope.s"))

    assert result.returncode == 1
    assert "Input file not found" in result.stderr


def test_cli_accepts_non_utf8_bytes(tmp_path: Path) -> None:
    source = tmp_path / "latin1.s"
    source.write_bytes(b".globl 3foo\nfoo:\n\tnop\t# caf\xe9 \xff\xfe\n\tret\n")

    result = _run(str(source), "--json")

    assert result.returncode == 0, result.stderr
    assert "Traceback" not in result.stderr
    assert json.loads(result.stdout)["subroutines"][0]["name"] == "foo"
