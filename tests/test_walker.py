import os

import pytest

from tightrope.walker import Walker, get_relative_path


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("a: 1\n", encoding="utf-8")
    return str(path)


def test_walk_finds_supported_files_in_order(tmp_path):
    expected = [
        _touch(tmp_path / "a.json"),
        _touch(tmp_path / "b" / "c.yaml"),
        _touch(tmp_path / "d.toml"),
        _touch(tmp_path / "e.yml"),
    ]
    _touch(tmp_path / "readme.md")
    _touch(tmp_path / ".hidden.yaml")
    assert Walker().walk(tmp_path) == expected


def test_walk_includes_uppercase_extension(tmp_path):
    upper = _touch(tmp_path / "X.YAML")
    assert Walker().walk(tmp_path) == [upper]


def test_walk_descends_into_hidden_directories(tmp_path):
    inner = _touch(tmp_path / ".cfg" / "app.yaml")
    assert Walker().walk(tmp_path) == [inner]


def test_walk_missing_root_returns_empty(tmp_path):
    assert Walker().walk(tmp_path / "nope") == []


def test_walk_root_file(tmp_path):
    single = _touch(tmp_path / "one.json")
    assert Walker().walk(single) == [single]


@pytest.mark.parametrize(
    "name, expected",
    [
        ("a.yaml", True),
        ("a.YML", True),
        ("dir/a.toml", True),
        ("a.json", True),
        ("a.txt", False),
        ("noext", False),
        ("dir.d/file", False),
    ],
)
def test_is_config_file(name, expected):
    assert Walker().is_config_file(name) is expected


def test_get_relative_path_round_trip(tmp_path):
    target = tmp_path / "a" / "b.yaml"
    rel = get_relative_path(tmp_path, target)
    assert rel == os.path.join("a", "b.yaml")
    assert os.path.join(str(tmp_path), rel) == str(target)


def test_get_relative_path_parent(tmp_path):
    assert get_relative_path(tmp_path / "sub", tmp_path) == ".."