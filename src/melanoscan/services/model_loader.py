"""Loads the lesion classifier once and hands it out to scan requests."""
from __future__ import annotations

import asyncio
import json
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import torch

from ..exceptions import ModelUnavailable, ShapeMismatchError
from ..utils.logger import get_logger
from .classifier import CLASS_NAMES

logger = get_logger(__name__)

DEFAULT_PRODUCER = "TensorFlow.js"


class ModelState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class LesionModel:
    """A TorchScript module plus the manifest it was loaded from."""

    def __init__(self, module: torch.nn.Module, manifest: Dict[str, Any], device: torch.device) -> None:
        self.module = module
        self.manifest = manifest
        self.device = device
        shape = manifest.get("input_shape")
        self.input_shape = tuple(int(dim) for dim in shape) if shape else None
        self.module.eval()

    def predict(self, tensor: torch.Tensor) -> np.ndarray:
        actual = tuple(tensor.shape[1:])
        if self.input_shape is not None and actual != self.input_shape:
            raise ShapeMismatchError(self.input_shape, actual)
        with torch.inference_mode():
            scores = self.module(tensor.to(self.device))
        return scores.squeeze(0).detach().cpu().numpy()

    @property
    def class_names(self) -> List[str]:
        return list(CLASS_NAMES)


def read_manifest(path: Path, producer: str = DEFAULT_PRODUCER) -> Dict[str, Any]:
    """Read ``model.json``, writing a default ``producer`` back if it is missing."""
    if not path.exists():
        raise FileNotFoundError(f"Model manifest {path} does not exist")
    manifest = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(manifest, dict):
        raise ValueError(f"Model manifest {path} must be a JSON object")
    if not manifest.get("producer"):
        logger.warning("Model manifest is missing `producer`; adding default", path=str(path))
        manifest["producer"] = producer
        path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    class_names = manifest.get("class_names")
    if class_names is not None and list(class_names) != list(CLASS_NAMES):
        raise ValueError(f"Model classes {class_names} do not match {list(CLASS_NAMES)}")
    return manifest


class ModelLoader:
    """Owns the process-wide model handle.

    ``load`` never raises; failures leave the loader in ``FAILED`` and can be
    retried by calling ``load`` again.
    """

    def __init__(
        self,
        model_dir: Path | str,
        manifest_name: str = "model.json",
        producer: str = DEFAULT_PRODUCER,
        device: torch.device | None = None,
    ) -> None:
        self.model_dir = Path(model_dir)
        self.manifest_path = self.model_dir / manifest_name
        self.producer = producer
        self.device = device or torch.device("cpu")
        self.last_error: Optional[str] = None
        self._model: Optional[LesionModel] = None
        self._state = ModelState.UNLOADED
        self._lock = threading.Lock()
        self._waiters_lock = threading.Lock()
        self._settled = threading.Event()
        self._waiters: List[Tuple[asyncio.AbstractEventLoop, "asyncio.Future[None]"]] = []

    @property
    def state(self) -> ModelState:
        return self._state

    def _mark_loading(self) -> None:
        with self._waiters_lock:
            self._settled.clear()
            self._state = ModelState.LOADING

    def load(self) -> Optional[LesionModel]:
        with self._lock:
            self._mark_loading()
            logger.info("Loading model", path=str(self.manifest_path))
            try:
                manifest = read_manifest(self.manifest_path, self.producer)
                weights = self.model_dir / manifest.get("weights", "model.pt")
                if not weights.exists():
                    raise FileNotFoundError(f"Model weights {weights} do not exist")
                module = torch.jit.load(str(weights), map_location=self.device)
                model = LesionModel(module, manifest, self.device)
            except Exception as exc:
                logger.error("Error loading model: {}", exc)
                self.last_error = str(exc)
                self._model = None
                self._state = ModelState.FAILED
                return None
            else:
                self._model = model
                self.last_error = None
                self._state = ModelState.READY
                logger.info("Model loaded successfully", producer=manifest["producer"])
                return model
            finally:
                self._settle()

    def _settle(self) -> None:
        with self._waiters_lock:
            self._settled.set()
            waiters, self._waiters = self._waiters, []
        for loop, waiter in waiters:
            if not loop.is_closed():
                loop.call_soon_threadsafe(_release, waiter)

    def start(self) -> "asyncio.Future[Optional[LesionModel]]":
        """Schedule ``load`` on a worker thread; requests wait on it meanwhile."""
        self._mark_loading()
        loop = asyncio.get_running_loop()
        return asyncio.ensure_future(loop.run_in_executor(None, self.load))

    def get(self) -> LesionModel:
        model = self._model
        if self._state is not ModelState.READY or model is None:
            raise ModelUnavailable(f"Model is not available (state: {self._state.value})")
        return model

    async def wait_until_ready(self, timeout: float) -> LesionModel:
        """Wait for an in-flight load to settle without holding a worker thread."""
        loop = asyncio.get_running_loop()
        waiter: "asyncio.Future[None]" = loop.create_future()
        with self._waiters_lock:
            pending = not self._settled.is_set() and self._state is ModelState.LOADING
            if pending:
                self._waiters.append((loop, waiter))
        if pending:
            try:
                await asyncio.wait_for(waiter, timeout)
            except asyncio.TimeoutError:
                logger.warning("Timed out waiting for model", timeout=timeout)
            finally:
                with self._waiters_lock:
                    if (loop, waiter) in self._waiters:
                        self._waiters.remove((loop, waiter))
        return self.get()


def _release(waiter: "asyncio.Future[None]") -> None:
    if not waiter.done():
        waiter.set_result(None)
