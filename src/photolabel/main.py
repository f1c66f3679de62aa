"""Start-up and tear-down of the classification core for a host application."""

from __future__ import annotations

import logging

from photolabel.config import Settings, get_settings
from photolabel.ml.image_classifier import ClassificationService
from photolabel.ml.model_store import ModelStore

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_service(settings: Settings | None = None) -> ClassificationService:
    """Load the bundled model and labels and return a ready service.

    The caller owns the returned service and must close it (or use it as a
    context manager) when the host shuts down.

    Raises:
        ModelLoadError: If the bundled assets cannot be loaded.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    logger.info(
        "Starting PhotoLabel (model=%s, labels=%s, input_size=%s, max_results=%s, threshold=%s)",
        settings.model_path,
        settings.labels_path,
        settings.input_size,
        settings.max_results,
        settings.threshold,
    )

    store = ModelStore.from_files(
        settings.model_path,
        settings.labels_path,
        settings.input_size,
        settings=settings,
    )
    service = ClassificationService(
        store,
        max_results=settings.max_results,
        threshold=settings.threshold,
        max_image_pixels=settings.max_image_pixels,
    )
    logger.info("PhotoLabel ready")
    return service
