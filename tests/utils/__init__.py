# tests/utils/__init__.py

from .buildconfig import make_meta, make_resolved, write_config_file
from .constants import DEFAULT_TEST_LOG_LEVEL, PROJ_ROOT
from .module_tree import make_module_tree, make_source_file, ps_function
from .patch_everywhere import patch_everywhere
from .trace import TEST_TRACE, make_test_trace


__all__ = [  # noqa: RUF022
    # buildconfig
    "make_meta",
    "make_resolved",
    "write_config_file",
    # constants
    "DEFAULT_TEST_LOG_LEVEL",
    "PROJ_ROOT",
    # module_tree
    "make_module_tree",
    "make_source_file",
    "ps_function",
    # patch_everywhere
    "patch_everywhere",
    # trace
    "TEST_TRACE",
    "make_test_trace",
]
