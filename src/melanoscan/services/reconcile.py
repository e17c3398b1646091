"""Find and remove uploaded images that no scan record points at."""
from __future__ import annotations

import time
from typing import List, Optional

from ..utils.logger import get_logger
from .storage import DocumentStore, ObjectStore

logger = get_logger(__name__)


def _key_timestamp_ms(key: str) -> Optional[int]:
    prefix, sep, _ = key.partition("--")
    if not sep or not prefix.isdigit():
        return None
    return int(prefix)


def find_orphans(
    object_store: ObjectStore,
    document_store: DocumentStore,
    *,
    grace_seconds: float = 3600.0,
    now_ms: Optional[int] = None,
) -> List[str]:
    """Keys older than ``grace_seconds`` whose URL appears in no document.

    Younger objects are skipped so uploads whose record is still being
    written are not reported.
    """
    now_ms = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    cutoff = now_ms - int(grace_seconds * 1000)
    referenced = {doc.get("url") for doc in document_store.all()}
    orphans = []
    for key in object_store.list_keys():
        stamp = _key_timestamp_ms(key)
        if stamp is not None and stamp > cutoff:
            continue
        if object_store.url_for(key) not in referenced:
            orphans.append(key)
    return orphans


def sweep_orphans(
    object_store: ObjectStore,
    document_store: DocumentStore,
    *,
    delete: bool = False,
    grace_seconds: float = 3600.0,
) -> List[str]:
    orphans = find_orphans(object_store, document_store, grace_seconds=grace_seconds)
    for key in orphans:
        if delete:
            object_store.delete(key)
            logger.info("Deleted orphaned object", key=key)
        else:
            logger.info("Found orphaned object", key=key)
    return orphans
