from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

import cv2
import numpy as np
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import TypeAdapter, ValidationError

from .compositor import BLEND_MODES
from .config import get_settings
from .effects import EYELINER_STYLES
from .makeup_pipeline import EFFECT_ORDER, MakeupPipeline
from .models import (
    EffectDefaultsResponse,
    FaceAnalysisResponse,
    FaceLandmark,
    MakeupConfig,
    MakeupResponse,
    PresetInfo,
    PresetListResponse,
)
from .presets import (
    BLEND_MODE_LABELS,
    EYELINER_STYLE_LABELS,
    labelled_options,
    list_presets,
    list_swatches,
)
from .service import DetectorUnavailableError, MakeupService

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Makeup Backend", version="1.0.0")
service = MakeupService(jpeg_quality=settings.jpeg_quality, debug_landmarks=settings.debug_landmarks)

_LANDMARKS_ADAPTER = TypeAdapter(List[Optional[FaceLandmark]])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> dict[str, Any]:
    return {"status": "ok"}


async def _load_image(upload: UploadFile) -> np.ndarray:
    """Load image from UploadFile and convert to numpy array."""
    try:
        data = await upload.read()
        if not data:
            raise HTTPException(status_code=400, detail="Empty image payload")
        array = np.frombuffer(data, np.uint8)
        image = cv2.imdecode(array, cv2.IMREAD_COLOR)
        if image is None:
            raise HTTPException(status_code=400, detail="Unsupported image format")
        return image
    except HTTPException:
        raise
    except Exception as exc:
        logger.error(f"Error loading image: {exc}", exc_info=True)
        raise HTTPException(status_code=400, detail=f"Failed to load image: {str(exc)}") from exc


def _parse_landmarks(raw: Optional[str]) -> Optional[List[Optional[FaceLandmark]]]:
    if raw is None or not raw.strip():
        return None
    try:
        return _LANDMARKS_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        logger.error(f"Invalid landmarks: {exc}")
        raise HTTPException(status_code=400, detail=f"Invalid landmarks: {exc.errors()}") from exc


@app.get("/api/makeup/presets", response_model=PresetListResponse)
async def get_presets() -> PresetListResponse:
    return PresetListResponse(presets=[PresetInfo(**preset) for preset in list_presets()])


@app.get("/api/makeup/defaults", response_model=EffectDefaultsResponse)
async def get_defaults() -> EffectDefaultsResponse:
    """Default settings of every effect in draw order, plus the labelled pickers."""
    return EffectDefaultsResponse(
        order=EFFECT_ORDER,
        effects=MakeupPipeline().get_all_settings(),
        blendModes=labelled_options(BLEND_MODES, BLEND_MODE_LABELS),
        eyelinerStyles=labelled_options(EYELINER_STYLES, EYELINER_STYLE_LABELS),
        swatches=list_swatches(),
    )


@app.post("/api/makeup/analyze", response_model=FaceAnalysisResponse)
async def analyze_face(image: UploadFile = File(...)) -> FaceAnalysisResponse:
    """Detect face landmarks in the uploaded image."""
    try:
        img = await _load_image(image)
        meta = service.analyze(img)
        if not meta:
            raise HTTPException(status_code=422, detail="No face detected")
        return FaceAnalysisResponse(faceMeta=meta)
    except HTTPException:
        raise
    except DetectorUnavailableError as exc:
        logger.error(f"Detector unavailable: {exc}")
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(f"Error analyzing face: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error analyzing face: {str(exc)}") from exc


@app.post("/api/makeup/apply", response_model=MakeupResponse)
async def apply_makeup(
    image: UploadFile = File(...),
    makeupConfig: str = Form(...),
    landmarks: Optional[str] = Form(None),
) -> MakeupResponse:
    """Apply the configured makeup effects to the uploaded image.

    ``landmarks`` (JSON list of ``{x, y, z?}`` in source pixels) skips detection.
    """
    try:
        config = MakeupConfig.model_validate_json(makeupConfig)
        pipeline = service.build_pipeline(config)
    except json.JSONDecodeError as exc:
        logger.error(f"Invalid makeupConfig JSON: {exc}")
        raise HTTPException(status_code=400, detail=f"Invalid makeupConfig JSON: {exc}") from exc
    except ValidationError as exc:
        logger.error(f"Invalid makeupConfig validation: {exc}")
        raise HTTPException(status_code=400, detail=f"Invalid makeupConfig: {exc.errors()}") from exc
    except Exception as exc:
        logger.error(f"Error parsing makeupConfig: {exc}")
        raise HTTPException(status_code=400, detail=f"Error parsing makeupConfig: {str(exc)}") from exc

    points = _parse_landmarks(landmarks)

    try:
        img = await _load_image(image)
        processed, meta, drawn = service.render(img, config, points, pipeline=pipeline)
        data_url = service.encode_image(processed)
        return MakeupResponse(image=data_url, faceMeta=meta, drawnEffects=drawn)
    except HTTPException:
        raise
    except DetectorUnavailableError as exc:
        logger.error(f"Detector unavailable: {exc}")
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(f"Error applying makeup effects: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error applying makeup effects: {str(exc)}") from exc
