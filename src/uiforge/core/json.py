"""Fast, type-safe JSON decoding for streamed records and export encoding."""

from typing import Any
import json

import msgspec
import orjson
from json_repair import repair_json

FENCE = "```"

_decoder = msgspec.json.Decoder()


class JSONParseError(Exception):
    """JSON parsing failed."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


def is_fence(line: str) -> bool:
    """Check whether a trimmed line is a markdown code-block delimiter."""
    return line.startswith(FENCE)


def validate_json_size(data: str, max_size: int, name: str = "JSON") -> None:
    """
    Validate encoded size of a JSON string.

    Args:
        data: JSON string to validate
        max_size: Maximum allowed size in bytes
        name: Name for error messages

    Raises:
        JSONParseError: If size exceeds limit
    """
    size = len(data.encode("utf-8"))
    if size > max_size:
        raise JSONParseError(f"{name} size {size} bytes exceeds maximum {max_size} bytes")


def decode_record(line: str, max_size: int | None = None) -> dict[str, Any]:
    """
    Decode one streamed line as a JSON object.

    No repair is attempted: a truncated or malformed line is a skipped
    record, never a guessed one.

    Args:
        line: Trimmed line of text
        max_size: Optional byte limit for the line

    Returns:
        Decoded object

    Raises:
        JSONParseError: If the line is oversized, malformed, or not an object
    """
    if max_size is not None:
        validate_json_size(line, max_size, "Record")

    try:
        result = _decoder.decode(line.encode("utf-8"))
    except msgspec.DecodeError as e:
        raise JSONParseError(f"Invalid JSON: {e}", e) from e

    if not isinstance(result, dict):
        raise JSONParseError(f"Expected object, got {type(result).__name__}")
    return result


def _strip_fences(text: str) -> str:
    if FENCE not in text:
        return text

    if f"{FENCE}json" in text:
        start_marker = text.find(f"{FENCE}json") + 7
    else:
        start_marker = text.find(FENCE) + 3

    end_marker = text.find(FENCE, start_marker)
    if end_marker == -1:
        return text[start_marker:].strip()
    return text[start_marker:end_marker].strip()


def extract_json_array(text: str, repair: bool = True) -> list[Any]:
    """
    Extract and parse a JSON array from free-form model output.

    Args:
        text: Text containing a JSON array, optionally fenced
        repair: Attempt to repair invalid JSON with json_repair

    Returns:
        Parsed list

    Raises:
        JSONParseError: If no array can be recovered
    """
    working_text = _strip_fences(text.strip())

    start = working_text.find("[")
    end = working_text.rfind("]")
    if start == -1 or (end == -1 and not repair):
        raise JSONParseError("No JSON array found in text")

    json_str = working_text[start : end + 1] if end > start else working_text[start:]

    try:
        result = _decoder.decode(json_str.encode("utf-8"))
    except msgspec.DecodeError as e:
        if not repair:
            raise JSONParseError(f"Invalid JSON: {e}", e) from e

        try:
            result = json.loads(repair_json(json_str))
        except Exception as repair_error:
            raise JSONParseError(f"JSON repair failed: {repair_error}", repair_error) from repair_error

    if not isinstance(result, list):
        raise JSONParseError(f"Expected list, got {type(result).__name__}")
    return result


def safe_json_dumps(obj: Any, **kwargs: Any) -> str:
    """
    Encode object to JSON string using the fastest suitable library.

    Args:
        obj: Object to encode
        **kwargs: Additional arguments (indent)

    Returns:
        JSON string
    """
    indent = kwargs.get("indent", 0)

    if not indent:
        try:
            return orjson.dumps(obj).decode("utf-8")
        except (TypeError, ValueError):
            # Fallback for edge cases (e.g., integers outside 64-bit range)
            pass

    # stdlib for pretty-printed output or as fallback
    return json.dumps(obj, indent=indent or None, ensure_ascii=False)
