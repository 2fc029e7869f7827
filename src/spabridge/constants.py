"""Wire vocabulary and fixed values shared by the bridge modules."""

OUTCOME_OK = "OK"
OUTCOME_YES = "YES"
OUTCOME_NO = "NO"
PAYLOAD_PREFIX = "OK:"
ERROR_PREFIX = "ERROR:"

ALL_ITEMS_LOADED = "ERROR: All items are already loaded."

STANDARD_BUTTONS = (
    "back",
    "more menu",
    "page menu",
    "user menu",
    "main menu",
)

SWIPE_DIRECTIONS = ("left", "right")

DEFAULT_APP_CONFIG = {"disableUserTours": True}

ALLOWED_RESULT_VALUES = {"success", "failed"}

REQUIRED_REPORT_KEYS = (
    "run_id",
    "url",
    "steps",
    "completed_steps",
    "failed_step",
    "error",
    "result",
    "app_config",
)
