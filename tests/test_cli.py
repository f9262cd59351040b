"""
CLI Test - dump, match and check subcommands
"""

import json

import pytest

from sfzutils.cli import main


KIT = """
<group> lovel=1 hivel=127
<region> sample=kick.wav key=36
<region> sample=snare.wav key=38 lorand=0 hirand=0.5
<region> sample=snare2.wav key=38 lorand=0.5 hirand=1
<region> sample=snare_off.wav key=38 trigger=release
<region> sample=sustain.wav key=60 locc64=64
"""


@pytest.fixture
def kit(tmp_path):
    path = tmp_path / "kit.sfz"
    path.write_text(KIT, encoding="utf-8")
    return path


def test_dump_to_stdout(kit, capsys):
    assert main(["dump", str(kit)]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["source"] == str(kit)
    assert [region["sample"] for region in data["regions"]] == [
        "kick.wav", "snare.wav", "snare2.wav", "snare_off.wav", "sustain.wav",
    ]
    assert data["regions"][4]["locc"] == {"64": 64}
    assert data["regions"][0]["hitimer"] is None


def test_dump_to_file(kit, tmp_path, capsys):
    out = tmp_path / "kit.json"
    assert main(["dump", str(kit), str(out)]) == 0
    assert "Wrote 5 regions" in capsys.readouterr().out
    assert len(json.loads(out.read_text(encoding="utf-8"))["regions"]) == 5


def test_dump_force_overwrites(kit, tmp_path):
    out = tmp_path / "kit.json"
    out.write_text("old", encoding="utf-8")
    assert main(["dump", str(kit), str(out), "-f"]) == 0
    assert out.read_text(encoding="utf-8").startswith("{")


def test_dump_declined_keeps_existing_file(kit, tmp_path, monkeypatch, capsys):
    out = tmp_path / "kit.json"
    out.write_text("old", encoding="utf-8")
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    assert main(["dump", str(kit), str(out)]) == 0
    assert out.read_text(encoding="utf-8") == "old"
    assert "Dump cancelled." in capsys.readouterr().out


def test_match_uses_random_draw(kit, capsys):
    assert main(["match", str(kit), "--key", "38", "--rand", "0.25"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines() == [
        "1 region(s) triggered by note-on key=38 velocity=100 channel=1",
        "  region 1: snare.wav",
    ]


def test_match_release(kit, capsys):
    assert main(["match", str(kit), "--key", "38", "--release", "--rand", "0.25"]) == 0
    out = capsys.readouterr().out
    assert "triggered by release" in out
    assert "snare_off.wav" in out
    assert "snare.wav" not in out.replace("snare_off.wav", "")


def test_match_with_controller(kit, capsys):
    assert main(["match", str(kit), "--key", "60", "--seed", "1"]) == 0
    assert capsys.readouterr().out.startswith("0 region(s)")

    assert main(["match", str(kit), "--key", "60", "--seed", "1", "--cc", "64=127"]) == 0
    assert "sustain.wav" in capsys.readouterr().out


def test_match_rejects_bad_random_draw(kit, capsys):
    assert main(["match", str(kit), "--key", "38", "--rand", "1.5"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_match_rejects_bad_controller_assignment(kit):
    with pytest.raises(SystemExit):
        main(["match", str(kit), "--key", "38", "--cc", "64"])


def test_check_clean_file(kit, capsys):
    assert main(["check", str(kit)]) == 0
    assert "No problems found in 5 regions." in capsys.readouterr().out


def test_check_reports_problems(tmp_path, capsys):
    path = tmp_path / "bad.sfz"
    path.write_text("<region> lokey=70 hikey=60\n", encoding="utf-8")
    assert main(["check", str(path)]) == 1
    out = capsys.readouterr().out
    assert "region 0: lokey=70 is greater than hikey=60" in out
    assert "1 problem(s) found in 1 regions." in out


def test_warnings_go_to_stderr(tmp_path, capsys):
    path = tmp_path / "odd.sfz"
    path.write_text("<region> sample=a.wav mystery=1\n", encoding="utf-8")
    assert main(["check", str(path)]) == 0
    captured = capsys.readouterr()
    assert "Warning:" in captured.err
    assert "mystery" in captured.err


def test_malformed_file_is_an_error(tmp_path, capsys):
    path = tmp_path / "broken.sfz"
    path.write_text("<region> lokey=abc\n", encoding="utf-8")
    assert main(["dump", str(path)]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error:")
    assert "lokey" in err


def test_missing_file_is_an_error(tmp_path, capsys):
    assert main(["check", str(tmp_path / "nope.sfz")]) == 1
    assert "Error:" in capsys.readouterr().err
