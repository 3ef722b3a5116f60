"""Canonical logging field names shared by process logs and audit events.

Process logs (stdout JSON) and admin-channel audit events describe the same
trigger lifecycle, so both draw their key names from this module.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"

# Correlation fields.
REQUEST_ID = "request_id"
ACTION = "action"

# Trigger participant fields.
USER = "user"
USER_ID = "user_id"
CHANNEL_ID = "channel_id"
TRIGGER_KIND = "trigger_kind"

# Remote code API fields.
REUSED = "reused"
API_STATUS = "api_status"
API_LATENCY_MS = "api_latency_ms"
API_BODY = "api_body"
ATTEMPTS = "attempts"

# Delivery fields.
DM_SENT = "dm_sent"
DM_ERROR = "dm_error"
DELETED_MESSAGE = "deleted_message"

# Failure detail fields.
EXTRA = "extra"
ERROR_STACK = "error_stack"

# Process identity fields.
PID = "pid"
SERVICE = "service"
ENVIRONMENT = "environment"
BUILD = "build"
