"""Shared fixtures: a tiny real ONNX classifier and its labels."""

from __future__ import annotations

import numpy as np
import pytest
from onnx import TensorProto, helper, numpy_helper

SIDE = 8
LABELS = ["red", "green", "blue", "dark"]

# Columns score the mean R, G and B of the input; "dark" rises as all fall.
WEIGHTS = np.array(
    [
        [1.0, 0.0, 0.0, -0.5],
        [0.0, 1.0, 0.0, -0.5],
        [0.0, 0.0, 1.0, -0.5],
    ],
    dtype=np.float32,
)


def build_model(side: int = SIDE, weights: np.ndarray = WEIGHTS) -> bytes:
    """Serialize an NHWC float model: mean colour -> linear -> sigmoid."""
    num_outputs = weights.shape[1]
    graph = helper.make_graph(
        [
            helper.make_node("ReduceMean", ["input"], ["mean"], axes=[1, 2], keepdims=0),
            helper.make_node("MatMul", ["mean", "weights"], ["logits"]),
            helper.make_node("Sigmoid", ["logits"], ["scores"]),
        ],
        "mean_colour_classifier",
        [helper.make_tensor_value_info("input", TensorProto.FLOAT, [1, side, side, 3])],
        [helper.make_tensor_value_info("scores", TensorProto.FLOAT, [1, num_outputs])],
        initializer=[numpy_helper.from_array(weights, name="weights")],
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    return model.SerializeToString()


def solid_image(rgb: tuple[int, int, int], height: int = 16, width: int = 12) -> np.ndarray:
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[...] = rgb
    return image


@pytest.fixture()
def model_bytes() -> bytes:
    return build_model()


@pytest.fixture()
def label_text() -> str:
    return "\n".join(LABELS) + "\n"
