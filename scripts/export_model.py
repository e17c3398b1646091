"""Export the lesion classifier to a TorchScript artifact with its manifest."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

import torch

from melanoscan.services.classifier import CLASS_NAMES
from melanoscan.services.model_loader import DEFAULT_PRODUCER
from melanoscan.services.network import LesionNet
from melanoscan.utils import logger


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Trace LesionNet and write a servable model directory")
    parser.add_argument("--checkpoint", default=None, help="Optional state_dict checkpoint to load")
    parser.add_argument("--output-dir", default="models/melanoscan", help="Directory for model.json and model.pt")
    parser.add_argument("--image-size", type=int, default=224, help="Square input resolution the model is traced at")
    parser.add_argument("--pretrained", action="store_true", help="Start from ImageNet weights")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    log = logger.get_logger(__name__)
    checkpoint = Path(args.checkpoint) if args.checkpoint else None

    model = LesionNet(checkpoint=checkpoint, pretrained=args.pretrained)
    dummy_input = torch.rand(1, args.image_size, args.image_size, 3)
    traced = torch.jit.trace(model, dummy_input)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    traced.save(str(output_dir / "model.pt"))
    manifest = {
        "producer": DEFAULT_PRODUCER,
        "format": "torchscript",
        "weights": "model.pt",
        "class_names": list(CLASS_NAMES),
        "input_shape": [args.image_size, args.image_size, 3],
    }
    (output_dir / "model.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    log.info("Exported model", output_dir=str(output_dir))


if __name__ == "__main__":
    main()
