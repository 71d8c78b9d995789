import json

import pytest

from poolbreaker import __version__
from poolbreaker.cli import main


@pytest.fixture
def input_tree(tmp_path, simple_pool):
    root = tmp_path / "input"
    (root / "nested").mkdir(parents=True)
    (root / "nested" / "sample.js").write_text(simple_pool, encoding="utf-8")
    (root / "plain.js").write_text("var a = 1;\n", encoding="utf-8")
    return root


def test_decodes_tree_into_mirror(tmp_path, input_tree, capsys):
    out = tmp_path / "decoded"
    assert main(["--input", str(input_tree), "--output", str(out)]) == 0

    decoded = (out / "nested" / "sample.js").read_text(encoding="utf-8")
    assert 'console.log("a", "f", d(100));' in decoded
    assert (out / "plain.js").read_text(encoding="utf-8") == "var a = 1;\n"

    stdout = capsys.readouterr().out
    assert "[*] Decoding:" in stdout
    assert "[+] Saved:" in stdout
    assert "1/2 file(s) changed" in stdout


def test_defaults_to_input_and_decoded(tmp_path, input_tree, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main([]) == 0
    assert (tmp_path / "decoded" / "plain.js").exists()


def test_missing_input_is_not_an_error(tmp_path, capsys):
    assert main(["--input", str(tmp_path / "nowhere"), "--output", str(tmp_path / "out")]) == 0
    assert "No .js files" in capsys.readouterr().out
    assert not (tmp_path / "out").exists()


def test_report_and_json(tmp_path, input_tree, capsys):
    report = tmp_path / "run.md"
    main(["--input", str(input_tree), "--output", str(tmp_path / "o"), "--report", str(report), "--json"])

    summary = json.loads(capsys.readouterr().out)
    assert summary["plain.js"]["changed"] is False
    assert "string_array" in summary["nested/sample.js"]["techniques_applied"]
    assert "| `nested/sample.js` | yes |" in report.read_text(encoding="utf-8")


def test_parallel_jobs(tmp_path, input_tree):
    out = tmp_path / "par"
    assert main(["--input", str(input_tree), "--output", str(out), "--jobs", "2"]) == 0
    assert '"a"' in (out / "nested" / "sample.js").read_text(encoding="utf-8")


def test_rounds_and_timeout_override(tmp_path, input_tree):
    out = tmp_path / "o"
    assert main(["--input", str(input_tree), "--output", str(out), "--rounds", "1", "--timeout", "0.5"]) == 0
    assert '"a"' in (out / "nested" / "sample.js").read_text(encoding="utf-8")


def test_bad_config_file_exits(tmp_path, input_tree):
    bad = tmp_path / "bad.yml"
    bad.write_text("bogus: 1\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        main(["--input", str(input_tree), "--config", str(bad)])
    assert excinfo.value.code == 2


def test_version(capsys):
    with pytest.raises(SystemExit):
        main(["--version"])
    assert __version__ in capsys.readouterr().out
