import io
import sys

from logyard.main import main


def test_capture_mode_reads_stdin(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"a\nb\n")))
    code = main(["-c", "-hdir", str(tmp_path), "-id", "cli", "-cdir", "app://caps"])
    assert code == 0
    assert (tmp_path / "caps" / "cli.log").read_bytes() == b"a\nb\n"


def test_demo_mode(tmp_path):
    assert main(["-demo", "2", "-maxDemoInterval", "0", "-hdir", str(tmp_path)]) == 0


def test_bad_config_exits_nonzero(tmp_path, capsys):
    assert main(["-port", "-1", "-hdir", str(tmp_path)]) == 1
    assert "port out of range" in capsys.readouterr().err


def test_unwritable_capture_dir_exits_nonzero(tmp_path, capsys):
    blocker = tmp_path / "file"
    blocker.write_bytes(b"")
    code = main(["-c", "-hdir", str(tmp_path), "-id", "x", "-cdir", str(blocker / "caps")])
    assert code == 1
    assert "failed to create capture file" in capsys.readouterr().err
