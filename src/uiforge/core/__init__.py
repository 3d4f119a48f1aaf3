"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .validate import (
    ValidationError,
    ValidationResult,
    TreeValidator,
    validate_tree,
)
from .logging_config import configure_logging, get_logger, LogContext
from .stream import LineBuffer, StreamCounter
from .json import (
    decode_record,
    extract_json_array,
    safe_json_dumps,
    JSONParseError,
    validate_json_size,
)
from .id import SessionID, PassID, new_session_id, new_pass_id


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Validation
    "ValidationError",
    "ValidationResult",
    "TreeValidator",
    "validate_tree",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # Streaming
    "LineBuffer",
    "StreamCounter",
    # JSON
    "decode_record",
    "extract_json_array",
    "safe_json_dumps",
    "JSONParseError",
    "validate_json_size",
    # IDs
    "SessionID",
    "PassID",
    "new_session_id",
    "new_pass_id",
]
