"""
Package metadata and dialect constants.
"""

# Package info
APP_NAME = "gpconfig"
APP_VERSION = "0.1.0"

# Dialect
ROOT_SECTION = ""          # Options that appear before any [header]
COMMENT_CHAR = "#"
QUOTE_CHAR = '"'
ESCAPE_CHAR = "\\"
PATH_SEPARATOR = "."

# Loading
DEFAULT_ENCODING = "utf-8"

# Integer range (64-bit signed)
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1
