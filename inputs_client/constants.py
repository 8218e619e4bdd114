"""
API paths and protocol constants.
"""
from urllib.parse import quote

# Largest number of records the service accepts in one create request
MAX_BATCH_SIZE = 128

INPUTS_PATH = "/v2/inputs"
INPUT_PATH = "/v2/inputs/{id}"
INPUTS_STATUS_PATH = "/v2/inputs/status"
SEARCH_PATH = "/v2/searches"
TOKEN_PATH = "/v2/token"

# Bulk mutation actions
MERGE_CONCEPTS = "merge_concepts"
DELETE_CONCEPTS = "delete_concepts"
OVERWRITE_CONCEPTS = "overwrite_concepts"
DELETE_RECORDS = "delete_records"

# Search scopes
SCOPE_INPUT = "input"
SCOPE_OUTPUT = "output"


def replace_vars(template: str, **values) -> str:
    """Fill a path template, URL-quoting every value."""
    return template.format(**{k: quote(str(v), safe="") for k, v in values.items()})
