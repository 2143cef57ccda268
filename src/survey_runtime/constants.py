"""Runtime constants shared across the engine, renderer and progress tracker.

Several constants can be overridden via environment variables so that
deployments can tune cache and routing limits without code changes.
"""

import os

# Canonical entry block.  Used when the survey config does not name an
# explicit ``entry`` and the block map contains this id.
# Overridable via SURVEY_ENTRY_BLOCK_ID env var.
ENTRY_BLOCK_ID = os.getenv("SURVEY_ENTRY_BLOCK_ID", "b0")

# Upper bound on routing hops (skips + auto-routing blocks) resolved within
# a single answer submission.  A misconfigured survey with a routing cycle
# fails with RoutingCycleError instead of looping forever.
MAX_ROUTING_HOPS = int(os.getenv("SURVEY_MAX_ROUTING_HOPS", "50"))

# In-memory session cache tuning.  0 disables the TTL / size bound.
SESSION_CACHE_TTL_SECONDS = float(os.getenv("SESSION_CACHE_TTL_SECONDS", "3600"))
SESSION_CACHE_MAX_SIZE = int(os.getenv("SESSION_CACHE_MAX_SIZE", "1000"))

# Variable seeded with the respondent's name at session start.
RESPONDENT_NAME_VARIABLE = "user_name"

# Answer fed to invisible routing blocks when the engine walks through them.
ACKNOWLEDGED = "acknowledged"

# Raw content value that marks a block whose text comes from conditionalContent.
CONTENT_PLACEHOLDER = "placeholder"

# Suffix of the synthesised block returned for an empty answer with onEmpty.message.
EMPTY_MESSAGE_SUFFIX = "-empty-message"

# Fallback text for a keyed dynamic message with no matching key and no default.
DEFAULT_DYNAMIC_MESSAGE = "Thanks for sharing!"

# Block types the engine resolves without showing them to the respondent.
ROUTING_TYPES: set[str] = {"routing"}

# Block types that never count towards the derived expected path.
NON_PROGRESS_TYPES: set[str] = {"routing", "dynamic-message", "final-message", "end"}

# Block types whose appearance as the next question ends the survey.
TERMINAL_TYPES: set[str] = {"final-message", "end"}
