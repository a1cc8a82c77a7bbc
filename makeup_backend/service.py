from __future__ import annotations

import base64
import logging
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .compositor import RenderSurface
from .makeup_pipeline import MakeupPipeline, RenderOptions
from .models import FaceLandmark, FaceMeta, MakeupConfig
from .regions import as_landmark_array

logger = logging.getLogger(__name__)


class DetectorUnavailableError(RuntimeError):
    """The landmark detector extra (mediapipe) is not installed."""


class MakeupService:
    """Glue between the HTTP layer, the landmark detector and the makeup pipeline."""

    def __init__(self, jpeg_quality: int = 95, debug_landmarks: bool = False) -> None:
        self.jpeg_quality = jpeg_quality
        self.debug_landmarks = debug_landmarks
        self._analyzer = None

    @property
    def analyzer(self):
        if self._analyzer is None:
            try:
                from .face_analyzer import FaceAnalyzer
            except ImportError as exc:
                raise DetectorUnavailableError(
                    "Landmark detection needs the 'detector' extra (mediapipe)"
                ) from exc
            self._analyzer = FaceAnalyzer()
        return self._analyzer

    def analyze(self, image: np.ndarray) -> Optional[FaceMeta]:
        return self.analyzer.serialize(self.analyzer.analyze(image))

    @staticmethod
    def build_pipeline(config: MakeupConfig) -> MakeupPipeline:
        pipeline = MakeupPipeline()
        if config.preset:
            pipeline.apply_preset(config.preset)
        for effect_name, partial in config.effects.items():
            pipeline.update(effect_name, partial)
        return pipeline

    def render(
        self,
        image: np.ndarray,
        config: MakeupConfig,
        landmarks: Optional[Sequence[Optional[FaceLandmark]]] = None,
        pipeline: Optional[MakeupPipeline] = None,
    ) -> Tuple[np.ndarray, Optional[FaceMeta], List[str]]:
        pipeline = pipeline or self.build_pipeline(config)
        if landmarks is not None:
            meta = face_meta_from_landmarks(landmarks)
        else:
            meta = self.analyze(image)

        result = image.copy()
        if meta is None or not meta.landmarks:
            logger.info("No landmarks available, returning the base image")
            return result, meta, []

        options = RenderOptions(debug_landmarks=config.debugLandmarks or self.debug_landmarks)
        drawn = pipeline.apply_all(RenderSurface(result), meta.landmarks, 1.0, options)
        logger.info(f"Applied makeup effects: {', '.join(drawn) or 'none'}")
        return result, meta, drawn

    def encode_image(self, image: np.ndarray) -> str:
        success, buffer = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), int(self.jpeg_quality)])
        if not success:
            raise ValueError("Failed to encode image")
        return "data:image/jpeg;base64," + base64.b64encode(buffer).decode("utf-8")


def face_meta_from_landmarks(landmarks: Sequence[Optional[FaceLandmark]]) -> Optional[FaceMeta]:
    """Describe caller-supplied landmarks the same way the detector would.

    Absent (``None``) entries keep their slot so landmark indices stay aligned;
    they are left out of the bounding box. A list with no present point is no face.
    """
    if not landmarks:
        return None
    pts = as_landmark_array(landmarks)
    finite = pts[np.all(np.isfinite(pts), axis=1)]
    if not len(finite):
        return None
    x, y, w, h = cv2.boundingRect(np.round(finite).astype(np.int32))
    bbox = [int(x), int(y), int(w), int(h)]
    return FaceMeta(bbox=bbox, confidence=None, landmarks=list(landmarks))
