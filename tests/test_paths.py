import os

import pytest

from logyard.errors import ResolutionError
from logyard.paths import HOME_MARKER, resolve, to_display


def test_home_marker_is_expanded(tmp_path):
    assert resolve("app://captures/x.log", str(tmp_path)) == str(tmp_path / "captures" / "x.log")


def test_plain_relative_path_uses_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert resolve("logs/a.log", "/elsewhere") == str(tmp_path / "logs" / "a.log")


def test_absolute_path_is_normalized(tmp_path):
    raw = str(tmp_path) + os.sep + "a" + os.sep + ".." + os.sep + "b.log"
    assert resolve(raw, "/unused") == str(tmp_path / "b.log")


def test_missing_path_still_resolves(tmp_path):
    assert resolve(str(tmp_path / "nope.log"), str(tmp_path)) == str(tmp_path / "nope.log")


@pytest.mark.parametrize("raw", ["", "   ", "bad\x00path"])
def test_unresolvable_paths_raise(raw):
    with pytest.raises(ResolutionError):
        resolve(raw, "/home")


def test_display_round_trips_under_home(tmp_path):
    path = str(tmp_path / "captures" / "run" / "x.log")
    shown = to_display(path, str(tmp_path))
    assert shown == "app://captures/run/x.log"
    assert resolve(shown, str(tmp_path)) == path


def test_display_of_home_itself(tmp_path):
    assert to_display(str(tmp_path), str(tmp_path)) == HOME_MARKER
    assert resolve(HOME_MARKER, str(tmp_path)) == str(tmp_path)


def test_display_leaves_outside_paths_alone(tmp_path):
    home = tmp_path / "home"
    other = str(tmp_path / "other" / "x.log")
    assert to_display(other, str(home)) == other
