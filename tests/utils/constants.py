# tests/utils/constants.py

from pathlib import Path


PROJ_ROOT = Path(__file__).resolve().parent.parent.parent

# Most verbose level, so every log line is exercised
DEFAULT_TEST_LOG_LEVEL = "trace"
