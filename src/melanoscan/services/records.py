"""Assembles scan records and persists them to the object and document stores."""
from __future__ import annotations

import asyncio
import functools
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, Optional

from ..exceptions import StorageError, ValidationError
from ..utils.logger import get_logger
from ..utils.timefmt import KeyClock, utc_now
from .classifier import Prediction
from .diagnosis import Diagnosis
from .preprocess import ImageUpload
from .storage import DocumentStore, ObjectStore

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ScanRecord:
    id: str
    userId: str
    fileName: str
    uploadedAt: datetime
    url: str
    confidence: float
    explanation: str
    suggestion: str

    def to_document(self) -> Dict[str, Any]:
        return asdict(self)


def require_user_id(user_id: Optional[str]) -> str:
    if user_id is None or not str(user_id).strip():
        raise ValidationError("User ID is required")
    return str(user_id)


def safe_filename(filename: Optional[str]) -> str:
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    return name or "upload"


class RecordBuilder:
    """Uploads the image, then writes the record document.

    The two writes are not transactional: when the document write fails the
    uploaded object stays behind and is left for ``reconcile.sweep_orphans``.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        document_store: DocumentStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        key_clock: KeyClock | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.object_store = object_store
        self.document_store = document_store
        self.clock = clock
        self.key_clock = key_clock or KeyClock()
        self.timeout = timeout

    def object_key(self, filename: str) -> str:
        """Object key ``<ms>--<8 random hex>--<filename>``."""
        return f"{self.key_clock.next()}--{uuid.uuid4().hex[:8]}--{filename}"

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        call = functools.partial(func, *args)
        return await asyncio.wait_for(loop.run_in_executor(None, call), self.timeout)

    async def build(
        self,
        user_id: Optional[str],
        image: ImageUpload,
        prediction: Prediction,
        diagnosis: Diagnosis,
    ) -> ScanRecord:
        user_id = require_user_id(user_id)
        file_name = safe_filename(image.filename)
        key = self.object_key(file_name)

        try:
            url = await self._run(self.object_store.put, image.data, key, image.content_type)
        except asyncio.TimeoutError as exc:
            raise StorageError("Image upload timed out") from exc
        except Exception as exc:
            logger.error("Image upload failed: {}", exc, key=key)
            raise StorageError(f"Image upload failed: {exc}") from exc

        record = ScanRecord(
            id=str(uuid.uuid4()),
            userId=user_id,
            fileName=file_name,
            uploadedAt=self.clock(),
            url=url,
            confidence=prediction.confidence,
            explanation=diagnosis.explanation,
            suggestion=diagnosis.suggestion,
        )

        try:
            await self._run(self.document_store.set, record.id, record.to_document())
        except Exception as exc:
            logger.error(
                "Scan record write failed; uploaded object is orphaned: {}",
                exc if str(exc) else type(exc).__name__,
                key=key,
                record_id=record.id,
            )
            if isinstance(exc, asyncio.TimeoutError):
                raise StorageError("Scan record write timed out") from exc
            raise StorageError(f"Scan record write failed: {exc}") from exc

        logger.info("Scan record stored", record_id=record.id, user_id=user_id, key=key)
        return record
