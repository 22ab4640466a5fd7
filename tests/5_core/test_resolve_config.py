# tests/5_core/test_resolve_config.py

import argparse
from pathlib import Path
from typing import Any

import pytest

import psbundler.config.config_resolve as mod_resolve
import psbundler.constants as mod_constants
import psbundler.errors as mod_errors


def _args(**kwargs: Any) -> argparse.Namespace:
    """Namespace shaped like the CLI parser's output."""
    defaults: dict[str, Any] = {
        "source": None,
        "target": None,
        "name": None,
        "notes": None,
        "exclude": None,
        "add_exclude": None,
        "module_version": None,
        "min_version": None,
        "watch": None,
        "dry_run": False,
        "log_level": None,
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


def _resolve(
    build_input: dict[str, Any] | None,
    tmp_path: Path,
    **kwargs: Any,
) -> Any:
    config_dir = tmp_path / "project"
    cwd = tmp_path / "cwd"
    return mod_resolve.resolve_config(
        build_input,  # type: ignore[arg-type]
        _args(**kwargs),
        config_dir,
        cwd,
    )


def test_cli_only_defaults(tmp_path: Path) -> None:
    # --- execute ---
    resolved = _resolve(None, tmp_path, source="src/Demo")

    # --- verify ---
    source = (tmp_path / "cwd" / "src" / "Demo").resolve()
    assert resolved["source"] == source
    assert resolved["target"] == source
    assert resolved["name"] == "Demo"
    assert resolved["notes"] == []
    assert resolved["exclude"] == mod_constants.DEFAULT_EXCLUDE
    assert resolved["script_extension"] == ".ps1"
    assert resolved["preamble"] == mod_constants.DEFAULT_PREAMBLE_NAME
    assert resolved["private_dir"] == mod_constants.DEFAULT_PRIVATE_DIR
    assert resolved["min_powershell_version"] == "2.0"
    assert resolved["module_version"] is None
    assert resolved["watch_interval"] == mod_constants.DEFAULT_WATCH_INTERVAL
    assert resolved["dry_run"] is False
    assert resolved["log_level"] == "INFO"
    assert resolved["__meta__"]["source_origin"] == "cli"


def test_config_paths_are_relative_to_config_dir(tmp_path: Path) -> None:
    resolved = _resolve({"source": "Demo", "target": "dist"}, tmp_path)

    assert resolved["source"] == (tmp_path / "project" / "Demo").resolve()
    assert resolved["target"] == (tmp_path / "project" / "dist").resolve()
    assert resolved["__meta__"]["source_origin"] == "config"


def test_cli_paths_override_config(tmp_path: Path) -> None:
    resolved = _resolve(
        {"source": "Demo", "target": "dist", "name": "FromConfig"},
        tmp_path,
        source="other",
        target="out",
        name="FromCli",
    )

    assert resolved["source"] == (tmp_path / "cwd" / "other").resolve()
    assert resolved["target"] == (tmp_path / "cwd" / "out").resolve()
    assert resolved["name"] == "FromCli"


def test_absolute_source_is_kept(tmp_path: Path) -> None:
    absolute = tmp_path / "abs" / "Demo"
    resolved = _resolve(None, tmp_path, source=str(absolute))
    assert resolved["source"] == absolute.resolve()


def test_missing_source_is_a_config_error(tmp_path: Path) -> None:
    with pytest.raises(mod_errors.ConfigError, match="No source directory given"):
        _resolve({"name": "Demo"}, tmp_path)


@pytest.mark.parametrize("name", ["a/b", "bad:name", ".."])
def test_invalid_module_name(tmp_path: Path, name: str) -> None:
    with pytest.raises(mod_errors.ConfigError, match="Invalid module name"):
        _resolve(None, tmp_path, source="src", name=name)


def test_notes_string_becomes_list(tmp_path: Path) -> None:
    resolved = _resolve({"source": "src", "notes": "Fixed it"}, tmp_path)
    assert resolved["notes"] == ["Fixed it"]


def test_cli_notes_replace_config_notes(tmp_path: Path) -> None:
    resolved = _resolve(
        {"source": "src", "notes": ["from config"]},
        tmp_path,
        notes=["from", "cli"],
    )
    assert resolved["notes"] == ["from", "cli"]


def test_excludes_config_then_add_excludes(tmp_path: Path) -> None:
    resolved = _resolve(
        {"source": "src", "exclude": ["a"], "add_exclude": ["b"]},
        tmp_path,
        add_exclude=["c", "a"],
    )
    assert resolved["exclude"] == ["a", "b", "c"]


def test_cli_exclude_overrides_config_exclude(tmp_path: Path) -> None:
    resolved = _resolve(
        {"source": "src", "exclude": ["a"], "add_exclude": ["b"]},
        tmp_path,
        exclude=["x"],
    )
    assert resolved["exclude"] == ["x", "b"]


def test_add_exclude_extends_defaults(tmp_path: Path) -> None:
    resolved = _resolve({"source": "src", "add_exclude": ["scratch"]}, tmp_path)
    assert resolved["exclude"] == [*mod_constants.DEFAULT_EXCLUDE, "scratch"]


def test_empty_config_exclude_disables_defaults(tmp_path: Path) -> None:
    resolved = _resolve({"source": "src", "exclude": []}, tmp_path)
    assert resolved["exclude"] == []


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(5.1, "5.1"), ("7", "7.0"), ("3.0.0", "3.0"), (4, "4.0")],
)
def test_min_version_is_normalized(tmp_path: Path, raw: Any, expected: str) -> None:
    resolved = _resolve({"source": "src", "min_powershell_version": raw}, tmp_path)
    assert resolved["min_powershell_version"] == expected


def test_cli_min_version_wins(tmp_path: Path) -> None:
    resolved = _resolve(
        {"source": "src", "min_powershell_version": "3.0"},
        tmp_path,
        min_version="5.1",
    )
    assert resolved["min_powershell_version"] == "5.1"


def test_invalid_min_version(tmp_path: Path) -> None:
    with pytest.raises(mod_errors.ConfigError, match="minimum PowerShell version"):
        _resolve(None, tmp_path, source="src", min_version="latest")


@pytest.mark.parametrize("raw", ["1", "1.2.3.4.5", "v1.2", "1.2-beta"])
def test_invalid_module_version(tmp_path: Path, raw: str) -> None:
    with pytest.raises(mod_errors.ConfigError, match="Invalid module version"):
        _resolve({"source": "src", "module_version": raw}, tmp_path)


def test_module_version_cli_wins(tmp_path: Path) -> None:
    resolved = _resolve(
        {"source": "src", "module_version": "1.0.0"},
        tmp_path,
        module_version="1.1.0",
    )
    assert resolved["module_version"] == "1.1.0"


def test_script_extension_gets_leading_dot(tmp_path: Path) -> None:
    resolved = _resolve({"source": "src", "script_extension": "psx"}, tmp_path)
    assert resolved["script_extension"] == ".psx"


def test_empty_script_extension_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(mod_errors.ConfigError, match="script_extension"):
        _resolve({"source": "src", "script_extension": " "}, tmp_path)


def test_watch_interval_precedence(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    cfg = {"source": "src", "watch_interval": 3}

    # config only
    assert _resolve(cfg, tmp_path)["watch_interval"] == 3.0

    # env beats config
    monkeypatch.setenv("PSBUNDLER_WATCH_INTERVAL", "2.5")
    assert _resolve(cfg, tmp_path)["watch_interval"] == 2.5

    # CLI beats env
    assert _resolve(cfg, tmp_path, watch=0.5)["watch_interval"] == 0.5


def test_invalid_env_watch_interval_falls_back(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("PSBUNDLER_WATCH_INTERVAL", "soon")

    resolved = _resolve({"source": "src"}, tmp_path)

    assert resolved["watch_interval"] == mod_constants.DEFAULT_WATCH_INTERVAL
    assert "PSBUNDLER_WATCH_INTERVAL" in capsys.readouterr().err


def test_log_level_precedence(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    cfg = {"source": "src", "log_level": "debug"}
    assert _resolve(cfg, tmp_path)["log_level"] == "DEBUG"

    monkeypatch.setenv("LOG_LEVEL", "error")
    assert _resolve(cfg, tmp_path)["log_level"] == "ERROR"

    assert _resolve(cfg, tmp_path, log_level="trace")["log_level"] == "TRACE"


def test_dry_run_comes_from_cli(tmp_path: Path) -> None:
    assert _resolve(None, tmp_path, source="src", dry_run=True)["dry_run"] is True
