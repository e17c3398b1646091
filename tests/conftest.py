"""Shared fixtures: tiny TorchScript models, sample images and in-process stores."""
from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
import torch
from fastapi.testclient import TestClient
from PIL import Image

from melanoscan.main import app
from melanoscan.services.model_loader import ModelLoader
from melanoscan.services.models import get_model_loader, get_pipeline
from melanoscan.services.pipeline import ScanPipeline
from melanoscan.services.records import RecordBuilder
from melanoscan.services.storage import (
    LocalObjectStore,
    MemoryDocumentStore,
    get_document_store,
)


class FixedScores(torch.nn.Module):
    def __init__(self, scores):
        super().__init__()
        self.register_buffer("scores", torch.tensor(scores, dtype=torch.float32))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.scores.unsqueeze(0).repeat([x.shape[0], 1])


class MeanColourHead(torch.nn.Module):
    def __init__(self):
        super().__init__()
        torch.manual_seed(0)
        self.fc = torch.nn.Linear(3, 4)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return torch.softmax(self.fc(x.mean(dim=[1, 2])), dim=-1)


def write_model(directory: Path, module: torch.nn.Module, **manifest) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    torch.jit.script(module).save(str(directory / "model.pt"))
    body = {"format": "torchscript", "weights": "model.pt", **manifest}
    (directory / "model.json").write_text(json.dumps(body, indent=2), encoding="utf-8")
    return directory


def image_bytes(size=(8, 8), color=(200, 120, 90), mode="RGB", fmt="PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color=color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return image_bytes()


@pytest.fixture
def model_dir(tmp_path):
    return write_model(tmp_path / "model", MeanColourHead(), producer="TensorFlow.js")


@pytest.fixture
def loader(model_dir):
    model_loader = ModelLoader(model_dir)
    assert model_loader.load() is not None
    return model_loader


@pytest.fixture
def object_store(tmp_path):
    return LocalObjectStore(tmp_path / "uploads", "http://testserver/uploads")


@pytest.fixture
def document_store():
    return MemoryDocumentStore()


@pytest.fixture
def builder(object_store, document_store):
    return RecordBuilder(object_store, document_store, timeout=5.0)


@pytest.fixture
def pipeline(loader, builder):
    scan_pipeline = ScanPipeline(loader, builder, model_wait_timeout=1.0)
    yield scan_pipeline
    scan_pipeline.close()


@pytest.fixture
def client(pipeline, loader, document_store):
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_model_loader] = lambda: loader
    app.dependency_overrides[get_document_store] = lambda: document_store
    yield TestClient(app)
    app.dependency_overrides.clear()
