"""Read-side view of a user's stored scan records."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..exceptions import NotFound, StorageError
from ..utils.logger import get_logger
from ..utils.timefmt import format_display
from .records import require_user_id
from .storage import DocumentStore

logger = get_logger(__name__)


def format_record(doc: Dict[str, Any], utc_offset_hours: int = 7) -> Dict[str, Any]:
    formatted = dict(doc)
    formatted["uploadedAt"] = format_display(doc["uploadedAt"], utc_offset_hours)
    return formatted


def format_history(
    store: DocumentStore,
    user_id: Optional[str],
    utc_offset_hours: int = 7,
) -> List[Dict[str, Any]]:
    """Return every record for ``user_id`` with a display timestamp, in store order."""
    user_id = require_user_id(user_id)
    try:
        docs = store.query("userId", user_id)
    except Exception as exc:
        logger.error("History query failed: {}", exc, user_id=user_id)
        raise StorageError(str(exc)) from exc
    if not docs:
        raise NotFound("No history found")
    try:
        return [format_record(doc, utc_offset_hours) for doc in docs]
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        logger.error("Malformed scan record: {!r}", exc, user_id=user_id)
        raise StorageError(f"Malformed scan record: {exc!r}") from exc
