"""Protocol constants.

Keep these in one place to avoid stringly-typed payload handling.
"""

# Session statuses. OK is the only non-terminal value.
OK = "ok"
EXITED = "exited"
CRASHED = "crashed"
ABNORMAL = "abnormal"

SESSION_STATUSES = frozenset((OK, EXITED, CRASHED, ABNORMAL))

# Envelope item types.
EVENT = "event"
TRANSACTION = "transaction"
SESSION = "session"
SESSIONS = "sessions"

# Outcome of a transport send.
UNKNOWN = "unknown"
SKIPPED = "skipped"
SUCCESS = "success"
RATE_LIMIT = "rate_limit"
INVALID = "invalid"
FAILED = "failed"

EVENT_STATUSES = frozenset((UNKNOWN, SKIPPED, SUCCESS, RATE_LIMIT, INVALID, FAILED))

# Submission routes.
LEGACY = "legacy"
ENVELOPE = "envelope"

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
