"""Image classification service.

Composes the tensor encoder, one inference call on the model store, and
top-K ranking behind a single ``classify`` operation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from photolabel.ml.preprocessing import decode_image, encode
from photolabel.ml.ranking import MAX_RESULTS, THRESHOLD, Recognition, rank

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray
    from PIL import Image

    from photolabel.ml.model_store import ModelStore

logger = logging.getLogger(__name__)


class ClassificationService:
    """Runs images through a loaded ModelStore.

    Calls are synchronous and must be serialized by the caller; the store's
    engine is not reentrant.
    """

    def __init__(
        self,
        store: ModelStore,
        *,
        max_results: int = MAX_RESULTS,
        threshold: float = THRESHOLD,
        max_image_pixels: int | None = None,
    ) -> None:
        self._store = store
        self._max_results = max_results
        self._threshold = threshold
        self._max_image_pixels = max_image_pixels

    @property
    def store(self) -> ModelStore:
        return self._store

    def classify(self, image: Image.Image | NDArray[np.generic]) -> list[Recognition]:
        """Encode, infer, and rank one image.

        Raises:
            UseAfterCloseError: If the store is closed.
            InvalidImageError: If the image is empty or malformed.
            InferenceError: If the engine fails.
            IndexOutOfRangeError: If the label list outgrows the scores.
        """
        self._store.ensure_open()
        tensor = encode(image, self._store.input_side)
        scores = self._store.infer(tensor)
        results = rank(scores, self._store.labels, k=self._max_results, threshold=self._threshold)
        logger.debug("Classified image: %s", ", ".join(str(r) for r in results))
        return results

    def classify_bytes(self, image_bytes: bytes) -> list[Recognition]:
        """Decode encoded image bytes (JPEG, PNG, ...) and classify the result."""
        return self.classify(decode_image(image_bytes, max_pixels=self._max_image_pixels))

    def close(self) -> None:
        """Release the underlying model store."""
        self._store.close()

    def __enter__(self) -> ClassificationService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
