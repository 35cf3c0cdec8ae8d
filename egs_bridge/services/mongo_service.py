"""
MongoDB Service - shared helpers for the collection services.

Every service takes an optional pymongo Database so tests can hand in
an in-memory one; production code falls back to the default client.

Documents leave the service layer through serialize_doc:
- "_id" becomes "id"
- ObjectId values (also inside lists and sub-documents) become strings
- password hashes are dropped
"""

from typing import Any, Optional, Union
from bson import ObjectId
from bson.errors import InvalidId

from egs_bridge.core.errors import NotFoundError


# ============================================================
# HELPER: Convert ObjectId to string for JSON serialization
# ============================================================

def _serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    return value


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == "password_hash":
            continue
        out["id" if key == "_id" else key] = _serialize_value(value)
    return out


def serialize_docs(docs) -> list:
    """Convert list (or cursor) of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


def to_object_id(value: Union[str, ObjectId], entity: str = "Resource") -> ObjectId:
    """Parse an id coming from a URL or request body. Malformed ids are treated as missing."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(f"{entity} not found", error_code="INVALID_ID")
