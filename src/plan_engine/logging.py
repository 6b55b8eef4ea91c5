"""Logging helpers with redaction."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable


_SENSITIVE_KEYS = re.compile(
    r"(token|secret|api[_-]?key|password|authorization|cookie)", re.IGNORECASE
)
_REDACTED = "***REDACTED***"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def redact_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    redacted: Dict[str, Any] = {}
    for key, value in payload.items():
        if _SENSITIVE_KEYS.search(key):
            redacted[key] = _REDACTED
        elif isinstance(value, dict):
            redacted[key] = redact_payload(value)
        else:
            redacted[key] = value
    return redacted


def redact_headers(headers: Dict[str, str], secret_names: Iterable[str] = ()) -> Dict[str, str]:
    secret = {name.lower() for name in secret_names}
    redacted: Dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in secret or _SENSITIVE_KEYS.search(key):
            redacted[key] = _REDACTED
        else:
            redacted[key] = value
    return redacted
