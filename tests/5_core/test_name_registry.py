# tests/5_core/test_name_registry.py

import pytest

import psbundler.errors as mod_errors
import psbundler.extract as mod_extract
import psbundler.registry as mod_registry
from tests.utils import make_source_file, ps_function


def _declarations(text: str, rel_path: str, *, is_private: bool = False) -> tuple:
    source = make_source_file(text, rel_path, is_private=is_private)
    return mod_extract.extract_declarations(source).declarations


def test_register_keeps_first_seen_order() -> None:
    # --- setup ---
    registry = mod_registry.NameRegistry()

    # --- execute ---
    registry.register_all(
        _declarations(ps_function("Get-B") + ps_function("Get-A"), "Public/B.ps1")
    )
    registry.register_all(
        _declarations(ps_function("Helper"), "Private/H.ps1", is_private=True)
    )

    # --- verify ---
    assert registry.public_names() == ["Get-B", "Get-A"]
    assert registry.private_names() == ["Helper"]
    assert len(registry) == 3


def test_duplicate_across_files_reports_both_files() -> None:
    # --- setup ---
    registry = mod_registry.NameRegistry()
    registry.register_all(_declarations(ps_function("Get-Foo"), "Public/A.ps1"))

    # --- execute ---
    with pytest.raises(mod_errors.DuplicateDeclarationError) as exc_info:
        registry.register_all(
            _declarations(ps_function("Get-Foo"), "Private/B.ps1", is_private=True)
        )

    # --- verify ---
    err = exc_info.value
    assert err.name == "Get-Foo"
    assert err.path.name == "B.ps1"
    assert err.first_path is not None
    assert err.first_path.name == "A.ps1"
    assert "Duplicate function name 'Get-Foo'" in str(err)


def test_duplicate_differing_only_in_case() -> None:
    registry = mod_registry.NameRegistry()
    registry.register_all(_declarations(ps_function("Get-Foo"), "A.ps1"))

    with pytest.raises(mod_errors.DuplicateDeclarationError, match="get-foo"):
        registry.register_all(_declarations(ps_function("get-foo"), "B.ps1"))


def test_duplicate_within_one_file() -> None:
    registry = mod_registry.NameRegistry()
    text = ps_function("Get-Foo") + ps_function("Get-Foo")

    with pytest.raises(mod_errors.DuplicateDeclarationError):
        registry.register_all(_declarations(text, "A.ps1"))


def test_failed_register_leaves_first_entry() -> None:
    registry = mod_registry.NameRegistry()
    registry.register_all(_declarations(ps_function("Get-Foo"), "A.ps1"))

    with pytest.raises(mod_errors.DuplicateDeclarationError):
        registry.register_all(
            _declarations(ps_function("Get-Foo"), "B.ps1", is_private=True)
        )

    assert registry.public_names() == ["Get-Foo"]
    assert registry.private_names() == []


def test_preamble_names_are_claimed_but_not_listed() -> None:
    # --- setup ---
    registry = mod_registry.NameRegistry()

    # --- execute ---
    registry.register_all(
        _declarations(ps_function("Initialize-Demo"), "Preamble.ps1"),
        preamble=True,
    )
    registry.register_all(_declarations(ps_function("Get-Foo"), "Public/A.ps1"))

    # --- verify ---
    assert registry.public_names() == ["Get-Foo"]
    assert registry.private_names() == []
    assert len(registry) == 1


def test_module_function_cannot_reuse_preamble_name() -> None:
    # --- setup ---
    registry = mod_registry.NameRegistry()
    registry.register_all(
        _declarations(ps_function("Get-Foo"), "Preamble.ps1"), preamble=True
    )

    # --- execute ---
    with pytest.raises(mod_errors.DuplicateDeclarationError) as exc_info:
        registry.register_all(_declarations(ps_function("get-foo"), "Public/A.ps1"))

    # --- verify ---
    assert exc_info.value.path.name == "A.ps1"
    assert exc_info.value.first_path is not None
    assert exc_info.value.first_path.name == "Preamble.ps1"
