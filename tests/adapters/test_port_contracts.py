"""Adapter contract tests for the default ports implementation.

Purpose
-------
Verify the default adapters continue to satisfy the application-layer ports
defined in ``src/lib_layered_env/application/ports.py`` so dependency inversion
remains enforceable through automated tests.
"""

from __future__ import annotations

from pathlib import Path

from lib_layered_env.adapters.dotenv.default import DefaultDotEnvLoader
from lib_layered_env.adapters.env.default import DefaultEnvLoader, default_env_prefix
from lib_layered_env.adapters.file_loaders.structured import JSONFileLoader, TOMLFileLoader, YAMLFileLoader
from lib_layered_env.application import ports
from lib_layered_env.application.conversion import DefaultTypeConverter
from lib_layered_env.domain.source import Source


def test_env_loader_contract() -> None:
    loader = DefaultEnvLoader(environ={f"{default_env_prefix('demo')}_SERVICE_TIMEOUT": "10"})
    assert isinstance(loader, ports.EnvLoader)
    source = loader.load(default_env_prefix("demo"))
    assert isinstance(source, Source)
    assert source.get_value("service.timeout") == "10"


def test_dotenv_loader_contract(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("SERVICE__TOKEN=abc\n", encoding="utf-8")
    loader = DefaultDotEnvLoader()
    assert isinstance(loader, ports.DotEnvLoader)
    source = loader.load(str(tmp_path))
    assert isinstance(source, Source)
    assert source.get_value("service.token") == "abc"


def test_file_loader_contracts(tmp_path: Path) -> None:
    toml_path = tmp_path / "config.toml"
    toml_path.write_text("[service]\nvalue = 1\n", encoding="utf-8")
    json_path = tmp_path / "config.json"
    json_path.write_text('{"service": {"value": 2}}', encoding="utf-8")
    yaml_path = tmp_path / "config.yaml"
    yaml_path.write_text("service:\n  value: 3\n", encoding="utf-8")

    for loader, path, expected in (
        (TOMLFileLoader(), toml_path, 1),
        (JSONFileLoader(), json_path, 2),
        (YAMLFileLoader(), yaml_path, 3),
    ):
        assert isinstance(loader, ports.FileLoader)
        assert loader.load(str(path))["service.value"] == expected


def test_converter_contract() -> None:
    assert isinstance(DefaultTypeConverter(), ports.TypeConverter)
