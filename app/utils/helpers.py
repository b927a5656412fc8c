"""
Helper utility functions
"""
from bson import ObjectId
from typing import Any, Dict, List
from datetime import datetime
import pytz


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string"""
    return datetime.now(pytz.utc).isoformat()


def serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = pytz.utc.localize(value)
        return value.astimezone(pytz.utc).isoformat()
    if isinstance(value, dict):
        return serialize_doc(value)
    if isinstance(value, list):
        return [serialize_value(item) for item in value]
    return value


def serialize_doc(doc: Dict) -> Dict:
    """Convert MongoDB document to JSON-serializable format"""
    if doc is None:
        return None
    return {key: serialize_value(value) for key, value in doc.items()}


def serialize_docs(docs: List[Dict]) -> List[Dict]:
    """Convert list of MongoDB documents to JSON-serializable format"""
    return [serialize_doc(doc) for doc in docs]
