"""
Shared constants for the request-normalization layer.

Fallback strings are user-facing: callers display or log them verbatim,
so they are part of the public contract and must not change casually.
"""

# Stop sequence appended by the caller layer to mark end-of-turn
DEFAULT_STOP_SEQUENCE = "<|EOT|>"

# Reasoning ("thinking") span markers
THINK_OPEN_MARKER = "<think>"
THINK_CLOSE_MARKER = "</think>"

# Discriminator key of the serialized tool-call envelope
TOOL_CALL_MARKER = "_native_tool_calls"

# Fixed user-facing fallback responses
FALLBACK_DISCONNECTED = "My brain disconnected, try again."
FALLBACK_THOUGHT_TOO_HARD = "I thought too hard, sorry, try again."
FALLBACK_VISION_UNSUPPORTED = "Vision is only supported by certain models."

# Output-defect retry cap
DEFAULT_MAX_ATTEMPTS = 5

# Rate-limit backoff: delay = BACKOFF_MULTIPLIER ** retries * BACKOFF_BASE_DELAY + U(0, BACKOFF_JITTER)
BACKOFF_MAX_RETRIES = 5
BACKOFF_BASE_DELAY = 1.0  # seconds
BACKOFF_MULTIPLIER = 2.0
BACKOFF_JITTER = 2.0  # seconds

# Embedding input cap for OpenAI-style embedding endpoints
EMBED_MAX_CHARS = 8191

# Special token some backends leak into output
SEPARATOR_TOKEN = "<|separator|>"
SEPARATOR_REPLACEMENT = "*no response*"

# Filler turn used by the strict alternation policy
FILLER_TURN_CONTENT = "_"
SYSTEM_TURN_PREFIX = "SYSTEM: "

# Anthropic requires max_tokens; used when the profile params omit it
ANTHROPIC_DEFAULT_MAX_TOKENS = 4096
ANTHROPIC_THINKING_HEADROOM = 1000

# Environment variable pointing at an optional keys.json file
KEYS_FILE_ENV_VAR = "RELAY_KEYS_FILE"
