from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import mediapipe as mp
import numpy as np

from .models import FaceLandmark, FaceMeta

logger = logging.getLogger(__name__)

mp_face_mesh = mp.solutions.face_mesh
_FACE_LOCK = threading.Lock()


@dataclass
class FaceAnalysis:
    bbox: Tuple[int, int, int, int]
    landmarks: np.ndarray  # shape: (478, 3), x/y in source pixels, z relative
    confidence: float = 1.0


class FaceAnalyzer:
    """MediaPipe FaceMesh wrapper with thread safety."""

    def __init__(self, min_detection_confidence: float = 0.5) -> None:
        self._mesh = mp_face_mesh.FaceMesh(
            static_image_mode=True,
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=0.5,
        )

    def analyze(self, image: np.ndarray) -> Optional[FaceAnalysis]:
        h, w = image.shape[:2]
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        with _FACE_LOCK:
            results = self._mesh.process(rgb)
        if not results.multi_face_landmarks:
            logger.info("No face detected")
            return None

        face_landmarks = results.multi_face_landmarks[0].landmark
        pts = np.array(
            [[lm.x * w, lm.y * h, lm.z * w] for lm in face_landmarks],
            dtype=np.float32,
        )
        hull = cv2.convexHull(pts[:, :2]).astype(np.int32)
        x, y, bw, bh = cv2.boundingRect(hull)
        return FaceAnalysis(bbox=(int(x), int(y), int(bw), int(bh)), landmarks=pts)

    @staticmethod
    def serialize(analysis: Optional[FaceAnalysis]) -> Optional[FaceMeta]:
        if not analysis:
            return None
        landmarks = [
            FaceLandmark(x=float(pt[0]), y=float(pt[1]), z=float(pt[2])) for pt in analysis.landmarks
        ]
        return FaceMeta(bbox=list(analysis.bbox), confidence=analysis.confidence, landmarks=landmarks)
