from __future__ import annotations
"""Reusable validation helpers for group data.

Raises ``ValidationFailed`` so callers get consistent 400 error semantics.
"""
import re
from typing import Any, Iterable, List
from shopauthz.errors import ValidationFailed

_SLUG_STRIP = re.compile(r'[^a-z0-9]+')


def slugify(value: str) -> str:
    """Lowercase, collapse every non-alphanumeric run to a single dash."""
    return _SLUG_STRIP.sub('-', value.strip().lower()).strip('-')


def require_name(value: Any, field_name: str = 'name') -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(f'{field_name} required')
    return value.strip()


def normalize_permissions(raw: Any) -> List[str]:
    """Return tokens as an ordered set: duplicates collapse, first occurrence keeps its position."""
    if raw is None:
        return []
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise ValidationFailed('permissions must be a list of strings')
    seen = set()
    out: List[str] = []
    for token in raw:
        if not isinstance(token, str) or not token.strip():
            raise ValidationFailed('permissions must be non-empty strings')
        token = token.strip()
        if token not in seen:
            seen.add(token)
            out.append(token)
    return out


__all__ = ['slugify', 'require_name', 'normalize_permissions']
