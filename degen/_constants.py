"""Common literal values used across degen.

These constants keep delimiters, file extensions, and reserved property names
centralized so the page model, template engine, and tests import the same
values without drifting. Intended for internal use within the degen package.

Examples
--------
>>> from degen import _constants
>>> _constants.FRONT_MATTER_DELIMITER
'---'
>>> "created" in _constants.DATE_SENTINELS
True
"""

DEFAULT_CONFIG_NAME = "degen.yaml"
FRONT_MATTER_DELIMITER = "---"
BODY_EXTENSION = ".md"
OUTPUT_EXTENSION = ".html"
DEFAULT_PAGE_TYPE = "default"

DATE_CREATED = "created"
DATE_MODIFIED = "modified"
DATE_SENTINELS = frozenset({DATE_CREATED, DATE_MODIFIED})

REQUIRED_PROPERTIES = (
    "page_type",
    "path",
    "template",
    "is_public",
    "export_path",
    "url",
    "date",
)

EMPTY_RENDER_RESULT = "null"
MAX_CHAIN_CALLS = 32
MAX_EXPRESSION_LENGTH = 4096
MAX_VALUE_LENGTH = 16 * 1024 * 1024
