"""
Configuration constants to replace magic strings throughout estree_walk
"""

import os

# Node shape constants (ESTree)
DISCRIMINATOR_FIELD = "type"  # Every ESTree node carries a string `type`
LOCATION_FIELD = "loc"
RANGE_FIELD = "range"
START_OFFSET_FIELD = "start"  # acorn-style flat offsets
END_OFFSET_FIELD = "end"

# ESTree columns are 0-based, display columns are 1-based
COLUMN_DISPLAY_OFFSET = 1

# Path formatting constants
PATH_SEPARATOR = "."
ROOT_PATH_LABEL = "<root>"

# Input constants
DEFAULT_FILE_ENCODING = "utf-8"
DEFAULT_SOURCE_NAME = "<input>"

# S-expression formatting constants
MAX_LINE_WIDTH = 100
INDENT_STRING = "  "
NIL_SYMBOL = "nil"

# Error codes
INVALID_ROOT_NODE_CODE = "W0001"
VISITOR_PROTOCOL_VIOLATION_CODE = "W0002"
GENERIC_TRAVERSAL_ERROR_CODE = "W0000"

# Environment variables
COLOR_ENV_VAR = "ESTREE_WALK_COLOR"
NO_COLOR_ENV_VAR = "NO_COLOR"


def use_color() -> bool:
    """ANSI styling is on unless NO_COLOR is set or ESTREE_WALK_COLOR disables it."""
    if os.environ.get(NO_COLOR_ENV_VAR):
        return False
    explicit = os.environ.get(COLOR_ENV_VAR, "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return True
