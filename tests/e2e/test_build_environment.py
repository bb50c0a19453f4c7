"""End-to-end coverage for the composition root.

Files, a ``.env`` file, and injected environment variables are combined the way
applications bootstrap, checking precedence, placeholder expansion across
layers, and error wrapping.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_layered_env import (
    ACTIVE_PROFILES_KEY,
    LayerLoadError,
    MapSource,
    build_environment,
    load_file_source,
    standard_environment,
)
from lib_layered_env.domain.errors import InvalidFormat, NotFound


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    (tmp_path / "base.toml").write_text(
        '[db]\nhost = "base-host"\nport = 5432\nurl = "postgres://${db.host}:${db.port}/${db.name:app}"\n',
        encoding="utf-8",
    )
    (tmp_path / "override.json").write_text('{"db": {"host": "override-host"}}', encoding="utf-8")
    (tmp_path / ".env").write_text("DB__NAME=from-dotenv\n", encoding="utf-8")
    return tmp_path


def test_precedence_env_then_dotenv_then_later_files(project: Path) -> None:
    env = build_environment(
        [project / "base.toml", project / "override.json"],
        dotenv_dir=str(project),
        environ={"APP_DB_PORT": "6543", "UNRELATED": "x"},
        env_prefix="APP",
    )
    assert env.chain.names() == (
        "system_environment",
        "dotenv",
        f"file:{project / 'override.json'}",
        f"file:{project / 'base.toml'}",
    )
    assert env.get_value("db.host") == "override-host"
    assert env.get_value("db.port", int) == 6543
    assert env.get_value("db.url") == "postgres://override-host:6543/from-dotenv"
    assert env.get_value("unrelated") is None


def test_dotenv_is_skipped_unless_requested(project: Path) -> None:
    env = build_environment([project / "base.toml"], environ={})
    assert "dotenv" not in env.chain
    assert env.get_value("db.url") == "postgres://base-host:5432/app"


def test_environment_can_be_left_out(project: Path) -> None:
    env = build_environment([project / "base.toml"], include_env=False)
    assert env.chain.names() == (f"file:{project / 'base.toml'}",)


def test_repeated_file_counts_at_its_last_position(project: Path) -> None:
    base = project / "base.toml"
    override = project / "override.json"
    env = build_environment([base, override, base], include_env=False)
    assert env.chain.names() == (f"file:{base}", f"file:{override}")
    assert env.get_value("db.host") == "base-host"


def test_profiles_come_from_configuration() -> None:
    env = build_environment(environ={"LAYERED_PROFILES_ACTIVE": "prod,eu"})
    assert env.active_profiles == ("prod", "eu")
    assert env.accepts_profiles("prod & eu")
    assert ACTIVE_PROFILES_KEY == "layered.profiles.active"


def test_callers_can_extend_the_built_chain(project: Path) -> None:
    env = build_environment([project / "base.toml"], environ={})
    env.chain.add_first(MapSource("cli-args", {"db.host": "cli-host"}))
    assert env.get_value("db.url") == "postgres://cli-host:5432/app"


def test_missing_file_is_wrapped(tmp_path: Path) -> None:
    with pytest.raises(LayerLoadError) as excinfo:
        build_environment([tmp_path / "absent.toml"], environ={})
    assert isinstance(excinfo.value.__cause__, NotFound)


def test_invalid_file_is_wrapped(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(LayerLoadError) as excinfo:
        load_file_source(broken)
    assert isinstance(excinfo.value.__cause__, InvalidFormat)


def test_invalid_dotenv_is_wrapped(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("NO_EQUALS_SIGN\n", encoding="utf-8")
    with pytest.raises(LayerLoadError):
        build_environment(dotenv_dir=str(tmp_path), include_env=False)


def test_standard_environment_reads_injected_variables() -> None:
    env = standard_environment({"SERVICE_URL": "http://${SERVICE_HOST:localhost}"})
    assert env.chain.names() == ("system_environment",)
    assert env.get_value("service.url") == "http://localhost"
