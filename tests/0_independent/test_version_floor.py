# tests/0_independent/test_version_floor.py

import psbundler.versions as mod_versions


def test_floor_starts_at_default_baseline() -> None:
    floor = mod_versions.VersionFloor()
    assert str(floor) == "2.0"
    assert floor.source == "default"


def test_observe_raises_floor() -> None:
    # --- setup ---
    floor = mod_versions.VersionFloor.starting_at("2.0")

    # --- execute ---
    moved = floor.observe("5.1", source="Public/Get-Foo.ps1")

    # --- verify ---
    assert moved is True
    assert str(floor) == "5.1"
    assert floor.source == "Public/Get-Foo.ps1"


def test_observe_never_lowers_floor() -> None:
    # --- setup ---
    floor = mod_versions.VersionFloor.starting_at("5.1")

    # --- execute ---
    results = [floor.observe(v) for v in ("3.0", "5.1", "2.0", None)]

    # --- verify ---
    assert results == [False, False, False, False]
    assert str(floor) == "5.1"
    assert floor.source == "baseline"


def test_floor_is_running_maximum_regardless_of_order() -> None:
    floor = mod_versions.VersionFloor()
    for v in ("3.0", "7.2", "5.1", "4.0"):
        floor.observe(v)
    assert floor.value == (7, 2)


def test_observe_accepts_parsed_tuples() -> None:
    floor = mod_versions.VersionFloor()
    assert floor.observe((6, 0)) is True
    assert str(floor) == "6.0"
