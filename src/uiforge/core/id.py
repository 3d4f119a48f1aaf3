"""ID Generation.

ULID-based identifiers for editing sessions and generation passes.

- K-sortable: a later pass always sorts after an earlier one
- Prefixed: ``sess_*`` and ``pass_*`` make log lines readable
"""

from typing import NewType
from ulid import ULID

SessionID = NewType("SessionID", str)
"""Editing session identifier"""

PassID = NewType("PassID", str)
"""Generation or refinement pass identifier"""


class Prefix:
    """ID prefix constants."""

    SESSION = "sess"
    PASS = "pass"


def _with_prefix(prefix: str) -> str:
    return f"{prefix}_{ULID()}"


def new_session_id() -> SessionID:
    """Generate a new editing session ID."""
    return SessionID(_with_prefix(Prefix.SESSION))


def new_pass_id() -> PassID:
    """Generate a new generation pass ID."""
    return PassID(_with_prefix(Prefix.PASS))


def extract_prefix(id_str: str) -> str | None:
    """Return the type prefix of an ID, or None if it has none."""
    prefix, sep, _ = id_str.partition("_")
    return prefix if sep else None


__all__ = [
    "SessionID",
    "PassID",
    "Prefix",
    "new_session_id",
    "new_pass_id",
    "extract_prefix",
]
