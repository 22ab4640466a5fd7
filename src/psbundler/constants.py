# src/psbundler/constants.py
"""Central constants used across the project."""

# --- env keys ---
DEFAULT_ENV_LOG_LEVEL: str = "LOG_LEVEL"
DEFAULT_ENV_WATCH_INTERVAL: str = "WATCH_INTERVAL"

# --- program defaults ---
DEFAULT_LOG_LEVEL: str = "info"
DEFAULT_WATCH_INTERVAL: float = 1.0  # seconds

# --- config defaults ---
DEFAULT_STRICT_CONFIG: bool = True
DEFAULT_DRY_RUN: bool = False

# --- source layout ---
DEFAULT_SCRIPT_EXTENSION: str = ".ps1"
DEFAULT_BUNDLE_EXTENSION: str = ".psm1"
DEFAULT_MANIFEST_EXTENSION: str = ".psd1"
DEFAULT_PREAMBLE_NAME: str = "Preamble.ps1"
DEFAULT_PRIVATE_DIR: str = "private"

# Case-insensitive regexes matched against each file's path relative to the
# source root (posix separators).
DEFAULT_EXCLUDE: list[str] = [
    "exclude",
    "tests",
    r"(^|/)build\.ps1$",
    r"\.deploy\.ps1$",
]

# --- descriptor defaults ---
DEFAULT_MIN_POWERSHELL_VERSION: str = "2.0"
DEFAULT_MODULE_VERSION: str = "0.0.1"
RELEASE_NOTES_SEPARATOR: str = "\n"

# Windows PowerShell 5.1 reads BOM-less files as ANSI
OUTPUT_ENCODING: str = "utf-8-sig"
