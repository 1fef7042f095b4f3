"""Branching constants shared across the SDK.

Default respondent-facing messages can be overridden via environment
variables so deployments can reword them without code changes.
"""

import os

# Directory holding survey definition YAML files.  None means the
# ``surveys/`` directory at the repository root.
DEFAULT_SURVEY_DIR = os.getenv("SURVEY_DEFINITIONS_DIR") or None

# Messages attached to actions whose rule carries no message of its own.
DEFAULT_JUMP_MESSAGE = os.getenv(
    "BRANCHING_JUMP_MESSAGE", "Redirecting based on your response..."
)
DEFAULT_END_SURVEY_MESSAGE = os.getenv(
    "BRANCHING_END_SURVEY_MESSAGE", "Survey completed based on your responses."
)
DEFAULT_DISQUALIFY_MESSAGE = os.getenv(
    "BRANCHING_DISQUALIFY_MESSAGE", "You do not qualify to continue this survey."
)

# Terminal node ids in the flow graph.
COMPLETION_NODE_ID = "completion"
DISQUALIFICATION_NODE_ID = "disqualification"

# Separator for InList operands.
IN_LIST_SEPARATOR = ","
