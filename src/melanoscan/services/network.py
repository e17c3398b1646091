"""ResNet-50 lesion classifier used to produce exported model artifacts."""
from __future__ import annotations

from pathlib import Path

import torch
from torchvision import models

from .classifier import CLASS_NAMES

IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)


class LesionNet(torch.nn.Module):
    """Takes (N, H, W, 3) tensors in [0, 1]; returns per-class probabilities.

    The softmax lives inside the network so the served scores can be used
    as-is by the classifier.
    """

    def __init__(self, checkpoint: Path | None = None, pretrained: bool = False) -> None:
        super().__init__()
        weights = models.ResNet50_Weights.IMAGENET1K_V2 if pretrained else None
        self.model = models.resnet50(weights=weights)
        self.model.fc = torch.nn.Linear(self.model.fc.in_features, len(CLASS_NAMES))
        self.register_buffer("mean", torch.tensor(IMAGENET_MEAN).view(1, 3, 1, 1))
        self.register_buffer("std", torch.tensor(IMAGENET_STD).view(1, 3, 1, 1))

        if checkpoint and checkpoint.exists():
            state = torch.load(checkpoint, map_location="cpu")
            state_dict = state.get("state_dict", state)
            checkpoint_classes = state.get("class_names")
            if checkpoint_classes and list(checkpoint_classes) != list(CLASS_NAMES):
                raise ValueError(f"Checkpoint classes {checkpoint_classes} do not match {list(CLASS_NAMES)}")
            self.model.load_state_dict(state_dict, strict=False)

        self.eval()

    def forward(self, images: torch.Tensor) -> torch.Tensor:
        x = images.permute(0, 3, 1, 2)
        x = (x - self.mean) / self.std
        return torch.softmax(self.model(x), dim=-1)
