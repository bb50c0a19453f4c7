from __future__ import annotations

import json
from pathlib import Path

import pytest

from lib_layered_env.adapters.file_loaders.structured import (
    JSONFileLoader,
    TOMLFileLoader,
    YAMLFileLoader,
    flatten_mapping,
    loader_for,
)
from lib_layered_env.domain.errors import InvalidFormat, NotFound


def test_toml_loader_flattens_tables(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('[db]\nport = 5432\n[db.pool]\nsize = 4\n[service]\nhosts = ["a", "b"]\n', encoding="utf-8")
    data = TOMLFileLoader().load(str(path))
    assert data == {"db.port": 5432, "db.pool.size": 4, "service.hosts": ["a", "b"]}


def test_toml_loader_missing_file(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        TOMLFileLoader().load(str(tmp_path / "missing.toml"))


def test_toml_loader_invalid(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[db\nport = ", encoding="utf-8")
    with pytest.raises(InvalidFormat, match="Invalid TOML"):
        TOMLFileLoader().load(str(path))


def test_json_loader_invalid(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid}", encoding="utf-8")
    with pytest.raises(InvalidFormat, match="Invalid JSON"):
        JSONFileLoader().load(str(path))


def test_json_loader_valid(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"feature": {"enabled": True}, "name": "demo"}), encoding="utf-8")
    data = JSONFileLoader().load(str(path))
    assert data == {"feature.enabled": True, "name": "demo"}


def test_json_loader_requires_top_level_object(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(InvalidFormat, match="did not produce a mapping"):
        JSONFileLoader().load(str(path))


def test_yaml_loader_handles_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("# empty file\n", encoding="utf-8")
    assert YAMLFileLoader().load(str(path)) == {}


def test_yaml_loader_flattens_and_rejects_invalid(tmp_path: Path) -> None:
    good = tmp_path / "config.yml"
    good.write_text("db:\n  host: localhost\n  port: 5432\n", encoding="utf-8")
    assert YAMLFileLoader().load(str(good)) == {"db.host": "localhost", "db.port": 5432}
    bad = tmp_path / "broken.yaml"
    bad.write_text("db: [unclosed\n", encoding="utf-8")
    with pytest.raises(InvalidFormat, match="Invalid YAML"):
        YAMLFileLoader().load(str(bad))


def test_flatten_mapping_drops_nulls_and_keeps_lists() -> None:
    assert flatten_mapping({"a": {"b": None, "c": [1, {"d": 2}]}, "e": 0}) == {"a.c": [1, {"d": 2}], "e": 0}


@pytest.mark.parametrize(
    ("name", "loader_type"),
    [("a.toml", TOMLFileLoader), ("a.JSON", JSONFileLoader), ("a.yaml", YAMLFileLoader), ("a.yml", YAMLFileLoader)],
)
def test_loader_for_suffix(name: str, loader_type: type) -> None:
    assert isinstance(loader_for(name), loader_type)


def test_loader_for_unknown_suffix() -> None:
    with pytest.raises(InvalidFormat, match="Unsupported"):
        loader_for("settings.ini")
