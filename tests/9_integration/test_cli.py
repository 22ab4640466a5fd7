# tests/9_integration/test_cli.py
"""End-to-end tests for the command line entry point, run in-process."""

import json
from pathlib import Path
from typing import Any

import pytest

import psbundler.cli as mod_cli
import psbundler.meta as mod_meta
import psbundler.psd1 as mod_psd1
from tests.utils import make_module_tree, ps_function, write_config_file


@pytest.fixture
def module_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A small module source tree; cwd is moved next to it."""
    monkeypatch.chdir(tmp_path)
    return make_module_tree(
        tmp_path / "Demo",
        {
            "Public/Get-Foo.ps1": "#Requires -Version 5.1\n" + ps_function("Get-Foo"),
            "Public/Set-Foo.ps1": ps_function("Set-Foo"),
            "Private/Helper.ps1": ps_function("Helper"),
        },
    )


def test_build_success_quiet(
    module_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    # --- execute ---
    code = mod_cli.main(["--source", str(module_root), "-q"])

    # --- verify ---
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out == ""
    manifest = mod_psd1.load(module_root / "Demo.psd1")
    assert manifest["FunctionsToExport"] == ["Get-Foo", "Set-Foo"]
    assert manifest["PowerShellVersion"] == "5.1"
    assert (module_root / "Demo.psm1").is_file()


def test_build_reports_progress(
    module_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = mod_cli.main(["--source", "Demo", "--no-color"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Building module Demo" in out
    assert "3 functions (2 public, 1 private)" in out


def test_emit_summary_prints_json(
    module_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    # --- execute ---
    code = mod_cli.main(
        ["--source", str(module_root), "--emit-summary", "-q", "--notes", "v1"]
    )

    # --- verify ---
    assert code == 0
    summary: dict[str, Any] = json.loads(capsys.readouterr().out)
    assert summary["name"] == "Demo"
    assert summary["public_functions"] == ["Get-Foo", "Set-Foo"]
    assert summary["private_functions"] == ["Helper"]
    assert summary["powershell_version"] == "5.1"
    assert summary["release_notes"] == "v1"
    assert summary["manifest_created"] is True


def test_target_and_name_flags(
    module_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = mod_cli.main(
        ["--source", "Demo", "--target", "dist", "--name", "Other", "-q"]
    )

    assert code == 0, capsys.readouterr().err
    assert (tmp_path / "dist" / "Other.psm1").is_file()
    assert (tmp_path / "dist" / "Other.psd1").is_file()


def test_missing_source_exits_with_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)

    code = mod_cli.main(["--source", str(tmp_path / "missing")])

    assert code == 1
    assert "not found" in capsys.readouterr().err


def test_no_source_anywhere_exits_with_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)

    code = mod_cli.main([])

    assert code == 1
    assert "No source directory given" in capsys.readouterr().err


def test_duplicate_exits_with_error_and_writes_nothing(
    module_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    # --- setup ---
    (module_root / "Private" / "Copy.ps1").write_text(
        ps_function("Set-Foo"), encoding="utf-8"
    )

    # --- execute ---
    code = mod_cli.main(["--source", str(module_root)])

    # --- verify ---
    assert code == 1
    assert "Duplicate function name 'Set-Foo'" in capsys.readouterr().err
    assert not (module_root / "Demo.psm1").exists()
    assert not (module_root / "Demo.psd1").exists()


def test_parse_error_exits_with_error(
    module_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (module_root / "Public" / "Broken.ps1").write_text(
        "function Get-Broken { 'x'\n", encoding="utf-8"
    )

    code = mod_cli.main(["--source", str(module_root)])

    err = capsys.readouterr().err
    assert code == 1
    assert "Broken.ps1" in err
    assert "Missing closing '}'" in err


def test_dry_run_writes_nothing(
    module_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = mod_cli.main(["--source", str(module_root), "--dry-run"])

    assert code == 0
    assert "Dry-run mode" in capsys.readouterr().out
    assert not (module_root / "Demo.psm1").exists()
    assert not (module_root / "Demo.psd1").exists()


def test_notes_accumulate_across_runs(module_root: Path) -> None:
    assert mod_cli.main(["--source", str(module_root), "-q", "--notes", "v1"]) == 0
    assert mod_cli.main(["--source", str(module_root), "-q", "--notes", "v2"]) == 0

    manifest = mod_psd1.load(module_root / "Demo.psd1")
    assert manifest["PrivateData"]["PSData"]["ReleaseNotes"] == "v2\nv1"


def test_version_flag(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)

    code = mod_cli.main(["--version"])

    out = capsys.readouterr().out
    assert code == 0
    assert mod_meta.PROGRAM_DISPLAY in out
    assert mod_meta.get_metadata().version in out


def test_unknown_flag_suggests_closest(
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as exc_info:
        mod_cli.main(["--sourse", "Demo"])

    assert exc_info.value.code == 2
    err = capsys.readouterr().err
    assert "unrecognized arguments: --sourse" in err
    assert "Hint: did you mean --source?" in err


def test_explicit_config_paths_are_relative_to_config(
    module_root: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    cfg = write_config_file(
        tmp_path / "build.json",
        {"source": "Demo", "target": "out", "notes": "from config"},
    )
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)

    # --- execute ---
    code = mod_cli.main(["-q", "--config", str(cfg)])

    # --- verify ---
    assert code == 0, capsys.readouterr().err
    manifest = mod_psd1.load(tmp_path / "out" / "Demo.psd1")
    assert manifest["PrivateData"]["PSData"]["ReleaseNotes"] == "from config"


def test_config_is_discovered_from_subdirectory(
    module_root: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    write_config_file(tmp_path / ".psbundler.json", {"source": "Demo"})
    monkeypatch.chdir(module_root / "Public")

    code = mod_cli.main(["-q"])

    assert code == 0, capsys.readouterr().err
    assert (module_root / "Demo.psm1").is_file()


def test_cli_flags_override_config(
    module_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    write_config_file(
        tmp_path / ".psbundler.json", {"source": "Demo", "name": "FromConfig"}
    )

    code = mod_cli.main(["-q", "--name", "FromCli"])

    assert code == 0, capsys.readouterr().err
    assert (module_root / "FromCli.psm1").is_file()
    assert not (module_root / "FromConfig.psm1").exists()


def test_toml_config(
    module_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    write_config_file(
        tmp_path / ".psbundler.toml",
        {"source": "Demo", "min_powershell_version": "7.0"},
    )

    code = mod_cli.main(["-q"])

    assert code == 0, capsys.readouterr().err
    manifest = mod_psd1.load(module_root / "Demo.psd1")
    assert manifest["PowerShellVersion"] == "7.0"


def test_strict_config_unknown_key_fails(
    module_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    write_config_file(tmp_path / ".psbundler.json", {"source": "Demo", "sorce": "x"})

    code = mod_cli.main([])

    err = capsys.readouterr().err
    assert code == 1
    assert "Unknown key 'sorce'" in err
    assert not (module_root / "Demo.psm1").exists()


def test_lenient_config_unknown_key_warns(
    module_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    write_config_file(
        tmp_path / ".psbundler.json",
        {"source": "Demo", "strict_config": False, "zzz": 1},
    )

    code = mod_cli.main([])

    assert code == 0
    assert "Unknown key 'zzz'" in capsys.readouterr().err
    assert (module_root / "Demo.psm1").is_file()


def test_watch_flag_uses_interval(
    module_root: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    # --- setup ---
    seen: dict[str, Any] = {}

    def fake_watch(rebuild: Any, resolved: Any, interval: float) -> None:
        seen["interval"] = interval
        seen["result"] = rebuild()

    monkeypatch.setattr(mod_cli, "watch_for_changes", fake_watch)

    # --- execute ---
    code = mod_cli.main(["--source", str(module_root), "-q", "--watch", "0.25"])

    # --- verify ---
    assert code == 0
    assert seen["interval"] == 0.25
    assert seen["result"].public_names == ["Get-Foo", "Set-Foo"]


def test_watch_flag_without_value_uses_default(
    module_root: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    seen: dict[str, Any] = {}

    def fake_watch(rebuild: Any, resolved: Any, interval: float) -> None:
        seen["interval"] = interval

    monkeypatch.setattr(mod_cli, "watch_for_changes", fake_watch)

    code = mod_cli.main(["--source", str(module_root), "-q", "--watch"])

    assert code == 0
    assert seen["interval"] == 1.0
