# src/psbundler/config/config_validate.py


from dataclasses import dataclass, field
from difflib import get_close_matches
from typing import Any

from psbundler.constants import DEFAULT_STRICT_CONFIG
from psbundler.logs import get_app_logger
from psbundler.utils import safe_isinstance, schema_from_typeddict

from .config_types import BuildConfig


# --- constants ------------------------------------------------------

DRYRUN_KEYS = {"dry-run", "dry_run", "dryrun", "no-op", "no_op", "noop"}
DRYRUN_MSG = (
    "Ignored config key(s) {keys}: this tool has no config option for it. "
    "Use the CLI flag '--dry-run' instead."
)

# Field-specific type examples for better error messages
FIELD_EXAMPLES: dict[str, str] = {
    "source": '"src/MyModule"',
    "target": '"dist"',
    "name": '"MyModule"',
    "notes": '"Fixed Get-Thing" or ["Fixed Get-Thing", "Added Set-Thing"]',
    "exclude": '["tests", "scratch"]',
    "add_exclude": '["scratch"]',
    "min_powershell_version": '"5.1"',
    "module_version": '"1.2.0"',
    "log_level": '"debug"',
    "strict_config": "true",
    "watch_interval": "1.5",
}


@dataclass
class ValidationSummary:
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    strict_warnings: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    strict: bool = DEFAULT_STRICT_CONFIG


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or str(tp).replace("typing.", "")


def _unknown_key_message(key: str, known: list[str]) -> str:
    msg = f"Unknown key {key!r} in configuration"
    close = get_close_matches(key, known, n=1, cutoff=0.6)
    if close:
        msg += f" (did you mean {close[0]!r}?)"
    return msg


def validate_config(
    parsed_cfg: dict[str, Any],
    *,
    strict_arg: bool | None = None,
) -> ValidationSummary:
    """Check a raw config dict against the ``BuildConfig`` schema.

    Wrong value types are always errors. Unknown keys are strict warnings
    (which fail validation) when strict mode is on, plain warnings otherwise.
    Strictness comes from *strict_arg*, then the config's own
    ``strict_config`` key, then the default.
    """
    logger = get_app_logger()
    logger.trace(f"[validate_config] Validating {len(parsed_cfg)} keys")

    summary = ValidationSummary()
    strict_from_cfg: Any = parsed_cfg.get("strict_config")
    if strict_arg is not None:
        summary.strict = strict_arg
    elif isinstance(strict_from_cfg, bool):
        summary.strict = strict_from_cfg

    schema = schema_from_typeddict(BuildConfig)
    known = sorted(schema)

    # --- dry-run lookalikes get their own explanation ---
    dryrun_found = sorted(k for k in parsed_cfg if k in DRYRUN_KEYS)
    if dryrun_found:
        msg = DRYRUN_MSG.format(keys=", ".join(dryrun_found))
        if summary.strict:
            summary.strict_warnings.append(msg)
        else:
            summary.warnings.append(msg)

    for key, value in parsed_cfg.items():
        if key in DRYRUN_KEYS:
            continue
        if key not in schema:
            msg = _unknown_key_message(key, known)
            if summary.strict:
                summary.strict_warnings.append(msg)
            else:
                summary.warnings.append(msg)
            continue

        expected = schema[key]
        if not safe_isinstance(value, expected):
            msg = (
                f"{key!r} must be of type {_type_name(expected)},"
                f" not {type(value).__name__}"
            )
            example = FIELD_EXAMPLES.get(key)
            if example:
                msg += f" (e.g. {key} = {example})"
            summary.errors.append(msg)

    summary.valid = not summary.errors and not summary.strict_warnings
    return summary
