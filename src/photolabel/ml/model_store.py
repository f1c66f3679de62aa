"""Model store: load, run, and release an ONNX classification model.

Owns the ONNX Runtime InferenceSession and the ordered label list that
binds each output slot to a label. A store is created once through
``ModelStore.load`` or ``ModelStore.from_files`` and released once with
``close``.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import numpy as np
from onnxruntime import InferenceSession, SessionOptions
from onnxruntime.capi.onnxruntime_pybind11_state import ExecutionMode

from photolabel.config import Settings
from photolabel.errors import InferenceError, ModelLoadError, UseAfterCloseError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

PIXEL_SIZE = 3


# ---------------------------------------------------------------------------
# Engine interface
# ---------------------------------------------------------------------------


class InferenceEngine(Protocol):
    """The subset of InferenceSession the store relies on."""

    def get_inputs(self) -> list[object]:
        """Return the model input descriptors."""
        ...

    def run(self, output_names: list[str] | None, input_feed: dict[str, object]) -> list[object]:
        """Run the model on the given inputs."""
        ...


class ModelState(StrEnum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    CLOSED = "closed"


def parse_labels(label_lines: str | Iterable[str]) -> list[str]:
    """Split label text into an ordered list, one label per line.

    A string is split on line breaks; the empty element a trailing newline
    would leave behind is not a label. Any other iterable is taken verbatim.
    """
    if isinstance(label_lines, str):
        return label_lines.splitlines()
    return [str(line) for line in label_lines]


# ---------------------------------------------------------------------------
# Concrete implementation
# ---------------------------------------------------------------------------


class ModelStore:
    """Holds one loaded inference engine and its label list."""

    def __init__(self, labels: Iterable[str], input_side: int) -> None:
        self._labels = tuple(labels)
        self._input_side = input_side
        self._session: InferenceEngine | None = None
        self._input_name: str | None = None
        self._state = ModelState.UNLOADED

    # -- Construction -------------------------------------------------------

    @classmethod
    def load(
        cls,
        model_bytes: bytes,
        label_lines: str | Iterable[str],
        input_side: int,
        *,
        settings: Settings | None = None,
    ) -> ModelStore:
        """Build a store from raw model bytes and label lines.

        Raises:
            ModelLoadError: If the input side is not positive, the bytes are
                empty, or the engine rejects the model.
        """
        if isinstance(input_side, bool) or not isinstance(input_side, int) or input_side <= 0:
            raise ModelLoadError(f"Input side must be a positive integer, got {input_side!r}")
        if not model_bytes:
            raise ModelLoadError("Model bytes are empty")

        store = cls(parse_labels(label_lines), input_side)
        store._attach(_create_session(bytes(model_bytes), settings or Settings()))
        logger.info(
            "Loaded model (%d bytes, %d labels, input side %d)",
            len(model_bytes),
            len(store._labels),
            input_side,
        )
        return store

    @classmethod
    def from_files(
        cls,
        model_path: str | Path,
        labels_path: str | Path,
        input_side: int,
        *,
        settings: Settings | None = None,
    ) -> ModelStore:
        """Read bundled model and label assets from disk and load them."""
        try:
            model_bytes = Path(model_path).read_bytes()
            label_text = Path(labels_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ModelLoadError(f"Cannot read model assets: {exc}") from exc
        logger.info("Read model assets from %s and %s", model_path, labels_path)
        return cls.load(model_bytes, label_text, input_side, settings=settings)

    def _attach(self, session: InferenceEngine) -> None:
        inputs = session.get_inputs()
        if not inputs:
            raise ModelLoadError("Model declares no inputs")
        self._input_name = inputs[0].name  # type: ignore[attr-defined]
        self._session = session
        self._state = ModelState.LOADED

    # -- Public API ---------------------------------------------------------

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is ModelState.CLOSED

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels

    @property
    def input_side(self) -> int:
        return self._input_side

    def ensure_open(self) -> tuple[InferenceEngine, str]:
        """Return the live engine and its input name, or raise if there is none."""
        if self._state is ModelState.CLOSED:
            raise UseAfterCloseError("Model store has been closed")
        if self._session is None or self._input_name is None:
            raise UseAfterCloseError("Model store holds no loaded model")
        return self._session, self._input_name

    def infer(self, tensor: NDArray[np.float32]) -> NDArray[np.float32]:
        """Run the model once on a flat input tensor and return its scores.

        Raises:
            UseAfterCloseError: If the store is closed.
            InferenceError: If the tensor length does not match the input side,
                or the engine fails or returns no scores.
        """
        session, input_name = self.ensure_open()

        side = self._input_side
        flat = np.asarray(tensor, dtype=np.float32).reshape(-1)
        if flat.size != side * side * PIXEL_SIZE:
            raise InferenceError(f"Input tensor has {flat.size} values, expected {side * side * PIXEL_SIZE}")
        batch = flat.reshape(1, side, side, PIXEL_SIZE)
        try:
            outputs = session.run(None, {input_name: batch})
        except Exception as exc:  # noqa: BLE001
            raise InferenceError(f"Inference failed: {exc}") from exc

        if not outputs:
            raise InferenceError("Model produced no outputs")
        scores = np.asarray(outputs[0], dtype=np.float32)
        return scores.reshape(-1) if scores.ndim <= 1 else scores[0].reshape(-1)

    def close(self) -> None:
        """Release the engine. Closing twice is a no-op."""
        if self._state is ModelState.CLOSED:
            return
        self._session = None
        self._input_name = None
        self._state = ModelState.CLOSED
        logger.info("Model store closed")

    def __enter__(self) -> ModelStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------


def _build_session_options(settings: Settings) -> SessionOptions:
    opts = SessionOptions()
    opts.intra_op_num_threads = settings.intra_op_threads
    opts.inter_op_num_threads = settings.inter_op_threads
    opts.execution_mode = ExecutionMode.ORT_SEQUENTIAL
    opts.enable_mem_pattern = True
    opts.enable_mem_reuse = True
    return opts


def _create_session(model_bytes: bytes, settings: Settings) -> InferenceSession:
    try:
        return InferenceSession(
            model_bytes,
            sess_options=_build_session_options(settings),
            providers=["CPUExecutionProvider"],
        )
    except Exception as exc:  # noqa: BLE001
        raise ModelLoadError(f"Cannot initialize inference engine: {exc}") from exc
