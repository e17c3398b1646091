"""Scan-request pipeline: validate, decode, classify, explain, persist."""
from __future__ import annotations

import asyncio
import functools
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable, Optional

from ..exceptions import InferenceError, ShapeMismatchError
from ..utils.logger import get_logger
from .classifier import Prediction, classify
from .diagnosis import explain
from .model_loader import ModelLoader
from .preprocess import ImageUpload, decode_image, validate_upload
from .records import RecordBuilder, ScanRecord, require_user_id

logger = get_logger(__name__)


class ScanPipeline:
    """Runs one scan request end to end.

    Decoding and inference happen on a dedicated thread pool sized to
    ``max_concurrent_inference``; every stage has its own timeout.
    """

    def __init__(
        self,
        loader: ModelLoader,
        builder: RecordBuilder,
        *,
        max_upload_bytes: int = 2 * 1024 * 1024,
        max_concurrent_inference: int = 2,
        model_wait_timeout: float = 30.0,
        decode_timeout: float = 10.0,
        inference_timeout: float = 30.0,
    ) -> None:
        self.loader = loader
        self.builder = builder
        self.max_upload_bytes = max_upload_bytes
        self.model_wait_timeout = model_wait_timeout
        self.decode_timeout = decode_timeout
        self.inference_timeout = inference_timeout
        self._inference_pool = ThreadPoolExecutor(
            max_workers=max_concurrent_inference, thread_name_prefix="inference"
        )

    async def _stage(
        self,
        name: str,
        timeout: float,
        func: Callable[..., Any],
        *args: Any,
        executor: Optional[Executor] = None,
    ) -> Any:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(executor, functools.partial(func, *args))
        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError as exc:
            raise InferenceError(f"{name} timed out after {timeout:g}s") from exc

    async def classify(self, image: ImageUpload) -> Prediction:
        model = await self.loader.wait_until_ready(self.model_wait_timeout)
        try:
            tensor = await self._stage(
                "Image decoding",
                self.decode_timeout,
                decode_image,
                image.data,
                model.input_shape,
                executor=self._inference_pool,
            )
        except ShapeMismatchError as exc:
            raise InferenceError(f"Input error: {exc.message}") from exc
        return await self._stage(
            "Inference",
            self.inference_timeout,
            classify,
            model,
            tensor,
            executor=self._inference_pool,
        )

    async def scan(self, user_id: Optional[str], image: ImageUpload) -> ScanRecord:
        validate_upload(image.content_type, len(image.data), self.max_upload_bytes)
        user_id = require_user_id(user_id)
        prediction = await self.classify(image)
        diagnosis = explain(prediction.label)
        logger.info(
            "Scan classified",
            user_id=user_id,
            label=prediction.label,
            confidence=prediction.confidence,
        )
        return await self.builder.build(user_id, image, prediction, diagnosis)

    def close(self) -> None:
        self._inference_pool.shutdown(wait=False)
