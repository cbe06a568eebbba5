"""Tracking event field constraints.

Identifier formats are generated by the browser client as
``<prefix>_<epoch millis>_<random alphanumeric>``.
"""

import re
from typing import Final

SESSION_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^session_\d+_[a-zA-Z0-9]+$")
EXPERIMENT_RUN_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^run_\d+_[a-zA-Z0-9]+$")
USER_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^user_\d+_[a-zA-Z0-9]+$")

# Longest textual IPv6 form (IPv4-mapped with zone-free notation)
IP_ADDRESS_MAX_LENGTH: Final[int] = 45

DEFAULT_USER_STEP: Final[int] = 1
MIN_USER_STEP: Final[int] = 1
# Largest value a BIGINT column holds
MAX_USER_STEP: Final[int] = 2**63 - 1

# Stored in place of survey fields when the survey was not clicked
NOT_APPLICABLE: Final[str] = "N/A"
SURVEY_CLICKED: Final[str] = "true"

# String values the client sends for an unclicked survey
FALSY_SURVEY_STRINGS: Final[frozenset[str]] = frozenset({"", "false", "0", "n/a"})

ERROR_SEPARATOR: Final[str] = ", "
