"""Opaque continuation tokens for keyset pagination.

A token is base64url(JSON) holding the last row's position (order value and
id) and a fingerprint of the query shape it was issued for. Feeding a token
to a query with another shape is rejected instead of silently skipping rows.
"""
import base64
import binascii
import hashlib
import json
from typing import Any, Dict, Tuple

from chatservice.core.exceptions import InvalidCursorError


Position = Tuple[int, str]


def _fingerprint(query_shape: Dict[str, Any]) -> str:
    raw = json.dumps(query_shape, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]


def encode_cursor(position: Position, query_shape: Dict[str, Any]) -> str:
    order_value, item_id = position
    payload = {"p": [order_value, item_id], "q": _fingerprint(query_shape)}
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(token: str, query_shape: Dict[str, Any]) -> Position:
    try:
        padded = token + "=" * (-len(token) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        order_value, item_id = payload["p"]
        fingerprint = payload["q"]
    except (binascii.Error, ValueError, TypeError, KeyError):
        raise InvalidCursorError(token) from None

    if fingerprint != _fingerprint(query_shape):
        raise InvalidCursorError(token)
    if isinstance(order_value, bool) or not isinstance(order_value, int) or not isinstance(item_id, str):
        raise InvalidCursorError(token)
    return order_value, item_id
