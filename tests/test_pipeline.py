"""Tests for the scan pipeline's concurrency bound and stage timeouts."""
from __future__ import annotations

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from PIL import ImageFile

from conftest import FixedScores, image_bytes, write_model
from melanoscan.exceptions import InferenceError, ValidationError
from melanoscan.services import model_loader as model_loader_module
from melanoscan.services import pipeline as pipeline_module
from melanoscan.services.classifier import Prediction
from melanoscan.services.model_loader import ModelLoader
from melanoscan.services.pipeline import ScanPipeline
from melanoscan.services.preprocess import ImageUpload


def _image():
    return ImageUpload(data=image_bytes(), content_type="image/png", filename="spot.png")


def test_concurrent_scans_get_distinct_records(pipeline, document_store):
    async def scenario():
        return await asyncio.gather(*(pipeline.scan(f"user-{i % 2}", _image()) for i in range(6)))

    records = asyncio.run(scenario())
    assert len({record.id for record in records}) == 6
    assert len(document_store.all()) == 6


def test_inference_calls_are_bounded(loader, builder, monkeypatch):
    active = 0
    peak = 0
    lock = threading.Lock()

    def slow_classify(model, tensor):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.1)
        with lock:
            active -= 1
        return Prediction("NV", 0.5)

    monkeypatch.setattr(pipeline_module, "classify", slow_classify)
    bounded = ScanPipeline(loader, builder, max_concurrent_inference=2)

    async def scenario():
        await asyncio.gather(*(bounded.classify(_image()) for _ in range(6)))

    try:
        asyncio.run(scenario())
    finally:
        bounded.close()
    assert peak == 2


def test_inference_timeout(loader, builder, monkeypatch, object_store):
    def stuck_classify(model, tensor):
        time.sleep(0.5)
        return Prediction("NV", 0.5)

    monkeypatch.setattr(pipeline_module, "classify", stuck_classify)
    impatient = ScanPipeline(loader, builder, inference_timeout=0.05)
    try:
        with pytest.raises(InferenceError, match="timed out"):
            asyncio.run(impatient.scan("user-1", _image()))
    finally:
        impatient.close()
    assert object_store.list_keys() == []


def test_type_is_checked_before_user_id(pipeline):
    text = ImageUpload(data=b"hi", content_type="text/plain", filename="a.txt")
    with pytest.raises(ValidationError, match="Only image files are allowed"):
        asyncio.run(pipeline.scan(None, text))


def test_requests_arriving_during_load_all_complete(model_dir, builder, monkeypatch):
    read_manifest = model_loader_module.read_manifest

    def slow_read_manifest(*args):
        time.sleep(0.6)
        return read_manifest(*args)

    monkeypatch.setattr(model_loader_module, "read_manifest", slow_read_manifest)
    loader = ModelLoader(model_dir)
    scans = ScanPipeline(loader, builder, decode_timeout=0.5, model_wait_timeout=5.0)
    small_executor = ThreadPoolExecutor(max_workers=3)

    async def scenario():
        asyncio.get_running_loop().set_default_executor(small_executor)
        loading = loader.start()
        early = [asyncio.ensure_future(scans.scan("user-1", _image())) for _ in range(4)]
        await asyncio.sleep(0.2)
        late = [asyncio.ensure_future(scans.scan("user-2", _image())) for _ in range(2)]
        records = await asyncio.gather(*early, *late)
        await loading
        return records

    try:
        records = asyncio.run(scenario())
    finally:
        scans.close()
    assert len(records) == 6
    assert loader.state.value == "ready"


def test_oversized_image_is_rejected_before_decoding(tmp_path, builder, monkeypatch, object_store):
    strict = ModelLoader(write_model(tmp_path / "fixed", FixedScores([0.1, 0.2, 0.3, 0.4]), input_shape=[32, 32, 3]))
    strict.load()

    def fail_load(self):
        raise AssertionError("pixel data should not be decoded")

    monkeypatch.setattr(ImageFile.ImageFile, "load", fail_load)
    bounded = ScanPipeline(strict, builder)
    huge = ImageUpload(data=image_bytes(size=(4000, 4000), color=0, mode="L"), content_type="image/png", filename="huge.png")
    try:
        with pytest.raises(InferenceError, match=r"expected input shape \(32, 32, 3\), got \(4000, 4000, 3\)"):
            asyncio.run(bounded.scan("user-1", huge))
    finally:
        bounded.close()
    assert object_store.list_keys() == []
