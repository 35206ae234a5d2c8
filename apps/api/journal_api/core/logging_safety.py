"""Helpers that keep usernames and record ids out of log lines."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from typing import Any

_DIGEST_LENGTH = 12


def safe_log_identifier(value: Any, *, prefix: str) -> str:
    """Return a deterministic non-reversible token for log correlation fields."""
    text = str(value or "").strip()
    if not text:
        return f"{prefix}-missing"

    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:_DIGEST_LENGTH]
    return f"{prefix}-{digest}"


def safe_log_identifiers(values: Iterable[Any], *, prefix: str) -> str:
    """Comma-joined tokens for a collection of identifiers."""
    return ",".join(safe_log_identifier(value, prefix=prefix) for value in values) or "-"
