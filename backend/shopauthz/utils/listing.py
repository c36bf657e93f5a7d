from __future__ import annotations
"""Paginated list responses with ETag / Last-Modified conditional support."""
import hashlib
from datetime import datetime, timezone, timedelta
from email.utils import parsedate_to_datetime, format_datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from flask import request, make_response
from shopauthz.config.settings import normalize_pagination
from shopauthz.errors import ValidationFailed

TIMESTAMP_TOLERANCE = timedelta(seconds=1)


def canonicalize_timestamp(dt: datetime) -> datetime:
    """Return UTC tz-aware timestamp truncated to whole seconds."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0)


def request_pagination() -> Tuple[int, int]:
    try:
        return normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        raise ValidationFailed(str(e))


def compute_etag(fingerprint: Iterable[Any], total: int, limit: int, offset: int, latest_iso: str = '') -> str:
    seed = f"{list(fingerprint)}|{total}|{limit}|{offset}|{latest_iso}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


def build_list_payload(rows: List[Dict[str, Any]], total: int, limit: int, offset: int):
    return {
        'data': rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'returned': len(rows)
        }
    }


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace('+00:00', 'Z')


def _set_validators(resp, etag: str, latest: Optional[datetime]):
    resp.headers['ETag'] = etag
    if latest:
        resp.headers['Last-Modified'] = format_datetime(latest, usegmt=True)
        resp.headers['X-Last-Modified-ISO'] = _iso(latest)
    return resp


def _parse_if_modified_since(header_val: str) -> Optional[datetime]:
    try:
        dt = datetime.fromisoformat(header_val.replace('Z', '+00:00'))
    except ValueError:
        try:
            dt = parsedate_to_datetime(header_val)
        except (TypeError, ValueError):
            return None
    if dt is not None and dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def cached_list_response(rows: List[Dict[str, Any]], fingerprint: Iterable[Any], total: int, limit: int, offset: int,
                         latest_ts: Optional[datetime] = None, head: bool = False):
    """Build the list response, or a 304 when the client's validators still match.

    ``fingerprint`` must change whenever any listed row changes (ids plus versions).
    If-None-Match takes precedence over If-Modified-Since.
    """
    latest = canonicalize_timestamp(latest_ts) if isinstance(latest_ts, datetime) else None
    etag = compute_etag(fingerprint, total, limit, offset, _iso(latest) if latest else '')
    inm = request.headers.get('If-None-Match')
    not_modified = bool(inm) and inm.strip('"') == etag
    if not not_modified and not inm and latest:
        ims = request.headers.get('If-Modified-Since')
        ims_dt = _parse_if_modified_since(ims) if ims else None
        if ims_dt and latest <= canonicalize_timestamp(ims_dt) + TIMESTAMP_TOLERANCE:
            not_modified = True
    if not_modified:
        return _set_validators(make_response('', 304), etag, latest)
    resp = make_response(build_list_payload(rows, total, limit, offset))
    if head:
        resp.set_data(b'')
    return _set_validators(resp, etag, latest)


__all__ = ['request_pagination', 'cached_list_response', 'compute_etag', 'canonicalize_timestamp']
