"""Map backend error payloads onto form field errors (core domain)."""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional

from core.errors import UNEXPECTED_ERROR_MESSAGE
from core.models import GLOBAL_ERROR_KEY, FieldErrors

_PATH_SPLIT = re.compile(r"[.\[]")


def _messages(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        candidates: Iterable[Any] = [value]
    elif isinstance(value, (list, tuple)):
        candidates = value
    elif isinstance(value, dict):
        # Nested error objects: flatten their messages.
        candidates = [msg for inner in value.values() for msg in _messages(inner)]
    else:
        candidates = [value]
    return [str(item).strip() for item in candidates if item is not None and str(item).strip()]


def _add(errors: FieldErrors, key: str, messages: List[str]) -> None:
    if not messages:
        return
    bucket = errors.setdefault(key, [])
    for message in messages:
        if message not in bucket:
            bucket.append(message)


def _target_field(key: str, known: set, composite_field: Optional[str]) -> str:
    if key in known:
        return key
    root = _PATH_SPLIT.split(key, maxsplit=1)[0]
    nested = root != key
    if nested and root in known:
        return root
    if composite_field and (nested or key == composite_field):
        return composite_field
    return GLOBAL_ERROR_KEY


def distribute(
    payload: Any,
    known_fields: Iterable[str],
    composite_field: Optional[str] = None,
    fallback: str = UNEXPECTED_ERROR_MESSAGE,
) -> FieldErrors:
    """Return per-field errors for a backend error payload.

    Rules:
    - ``errors`` keys matching a known field land on that field.
    - Nested keys (``images[0]``, ``images.0.path``) land on their root field
      when it is known, otherwise on ``composite_field`` when one is set.
    - Anything else lands on ``"global"``.
    - A flat ``message`` or ``error`` string becomes the global error when no
      global entry was collected.
    - If nothing is recognizable, ``fallback`` is the sole global error.

    Never raises: it runs inside failure handling.
    """

    known = {name for name in known_fields if isinstance(name, str)}
    errors: FieldErrors = {}

    if isinstance(payload, str):
        _add(errors, GLOBAL_ERROR_KEY, _messages(payload))
    elif isinstance(payload, dict):
        field_errors = payload.get("errors")
        if isinstance(field_errors, dict):
            for key, value in field_errors.items():
                _add(errors, _target_field(str(key), known, composite_field), _messages(value))
        elif isinstance(field_errors, (list, tuple, str)):
            _add(errors, GLOBAL_ERROR_KEY, _messages(field_errors))

        if GLOBAL_ERROR_KEY not in errors:
            for key in ("message", "error"):
                flat = payload.get(key)
                if isinstance(flat, str) and flat.strip():
                    errors[GLOBAL_ERROR_KEY] = [flat.strip()]
                    break

    if not errors:
        errors[GLOBAL_ERROR_KEY] = [fallback]
    return errors
