# src/psbundler/utils/__init__.py

from .utils_files import load_jsonc, load_toml, write_text_atomic
from .utils_matching import has_path_segment, is_excluded_raw, relative_posix
from .utils_text import flatten_notes, plural, remove_path_in_error_message
from .utils_types import cast_hint, safe_isinstance, schema_from_typeddict


__all__ = [  # noqa: RUF022
    # utils_files
    "load_jsonc",
    "load_toml",
    "write_text_atomic",
    # utils_matching
    "has_path_segment",
    "is_excluded_raw",
    "relative_posix",
    # utils_text
    "flatten_notes",
    "plural",
    "remove_path_in_error_message",
    # utils_types
    "cast_hint",
    "safe_isinstance",
    "schema_from_typeddict",
]
