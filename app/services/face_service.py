"""
Face descriptor matching and the shared face-embedding model.

Descriptors are fixed-length float vectors produced by an external embedding model
(client-side in the browser, or server-side through a configured FaceModel). They are
stored on the employee as a JSON array.
"""
import base64
import binascii
import importlib
import json
import threading
from typing import Callable, List, NamedTuple, Optional, Sequence

import numpy as np

from app.core.config import settings
from app.core.errors import FaceModelUnavailable, NoFaceDetected
from app.core.logging import get_logger

logger = get_logger(__name__)

NO_ENROLLMENT_DISTANCE = 1.0


class FaceMatch(NamedTuple):
    is_match: bool
    distance: float


class FaceModel:
    """Embedding model interface: image bytes -> descriptor, or None when no face is found."""

    def describe(self, image: bytes) -> Optional[Sequence[float]]:
        raise NotImplementedError


class FaceModelProvider:
    """
    Process-wide holder for the face model. The loader runs at most once; concurrent
    first callers block until it finishes. A failed load is not cached, so the next call retries.
    """

    def __init__(self, loader: Optional[Callable[[], FaceModel]] = None):
        self._loader = loader
        self._model: Optional[FaceModel] = None
        self._lock = threading.Lock()

    def configure(self, loader: Optional[Callable[[], FaceModel]]) -> None:
        """Swap the loader and drop any loaded model (used at startup and in tests)."""
        with self._lock:
            self._loader = loader
            self._model = None

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def get(self) -> FaceModel:
        if self._model is not None:
            return self._model
        with self._lock:
            if self._model is None:
                if self._loader is None:
                    raise FaceModelUnavailable()
                logger.info("Loading face embedding model")
                try:
                    self._model = self._loader()
                except Exception as exc:
                    logger.error("Error loading face model: %s", exc)
                    raise FaceModelUnavailable() from exc
                logger.info("Face embedding model loaded")
        return self._model


def _loader_from_settings() -> Optional[Callable[[], FaceModel]]:
    """Resolve FACE_MODEL_LOADER ("package.module:factory") to a callable, if configured."""
    target = settings.FACE_MODEL_LOADER
    if not target:
        return None

    def load() -> FaceModel:
        module_name, _, attr = target.partition(":")
        factory = getattr(importlib.import_module(module_name), attr or "load_model")
        return factory()

    return load


face_models = FaceModelProvider(_loader_from_settings())


def deserialize_descriptor(serialized: str) -> np.ndarray:
    """
    Decode a stored descriptor. Accepts a JSON array, or a JSON object keyed by index
    ({"0": 0.1, "1": ...}) as written by some document stores.

    Raises:
        ValueError: If the value is not a numeric vector
    """
    parsed = json.loads(serialized)
    if isinstance(parsed, dict):
        parsed = [parsed[k] for k in sorted(parsed, key=int)]
    if not isinstance(parsed, list) or not parsed:
        raise ValueError("Descriptor must be a non-empty JSON array")
    return np.asarray(parsed, dtype=np.float32)


def serialize_descriptor(descriptor: Sequence[float]) -> str:
    return json.dumps([float(x) for x in descriptor])


def match_face(
    live_descriptor: Sequence[float],
    stored_serialized: Optional[str],
    threshold: Optional[float] = None,
) -> FaceMatch:
    """
    Compare a live descriptor with the employee's enrolled one.

    No enrollment, an undecodable stored value or a length mismatch all give
    FaceMatch(False, 1.0). Otherwise distance is Euclidean and a match is distance < threshold.
    """
    if not stored_serialized:
        return FaceMatch(False, NO_ENROLLMENT_DISTANCE)

    if threshold is None:
        threshold = settings.FACE_MATCH_THRESHOLD

    try:
        stored = deserialize_descriptor(stored_serialized)
    except (ValueError, TypeError, KeyError) as exc:
        logger.warning("Stored face descriptor could not be decoded: %s", exc)
        return FaceMatch(False, NO_ENROLLMENT_DISTANCE)

    live = np.asarray(live_descriptor, dtype=np.float32)
    if live.shape != stored.shape:
        return FaceMatch(False, NO_ENROLLMENT_DISTANCE)

    distance = float(np.linalg.norm(live - stored))
    return FaceMatch(distance < threshold, distance)


def decode_image(image: str) -> bytes:
    """Decode a base64 image, with or without a data URL prefix."""
    _, _, payload = image.rpartition(",")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise NoFaceDetected("Ảnh không hợp lệ. Vui lòng chụp lại.")


def extract_descriptor(image: str) -> List[float]:
    """
    Run the face model on a base64 image.

    Raises:
        NoFaceDetected: If the image holds no usable face
        FaceModelUnavailable: If no model is configured or it failed to load
    """
    model = face_models.get()
    descriptor = model.describe(decode_image(image))
    if descriptor is None or len(descriptor) == 0:
        raise NoFaceDetected()
    return [float(x) for x in descriptor]


def validate_descriptor(descriptor: Sequence[float]) -> List[float]:
    """Check dimensionality and finiteness of a descriptor before storing or comparing it."""
    values = [float(x) for x in descriptor]
    if len(values) != settings.FACE_DESCRIPTOR_LENGTH:
        raise ValueError(
            f"Face descriptor must have {settings.FACE_DESCRIPTOR_LENGTH} values, got {len(values)}"
        )
    if not np.all(np.isfinite(values)):
        raise ValueError("Face descriptor contains non-finite values")
    return values
