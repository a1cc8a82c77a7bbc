from __future__ import annotations

import base64
import json

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from makeup_backend import main
from makeup_backend.models import FaceLandmark, FaceMeta


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def png_bytes(base_image):
    ok, buffer = cv2.imencode(".png", base_image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def landmarks_json(face_landmarks):
    return json.dumps([{"x": float(x), "y": float(y)} for x, y in face_landmarks])


def _decode_data_url(data_url: str) -> np.ndarray:
    header, payload = data_url.split(",", 1)
    assert header == "data:image/jpeg;base64"
    raw = np.frombuffer(base64.b64decode(payload), np.uint8)
    return cv2.imdecode(raw, cv2.IMREAD_COLOR)


class FakeAnalyzer:
    def __init__(self, meta=None):
        self.meta = meta

    def analyze(self, image):
        return self.meta

    def serialize(self, analysis):
        return analysis


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_presets_endpoint(client):
    presets = client.get("/api/makeup/presets").json()["presets"]
    assert [p["value"] for p in presets] == ["natural", "glam", "bridal", "party", "none"]


def test_defaults_endpoint(client):
    body = client.get("/api/makeup/defaults").json()
    assert body["order"][0] == "skinSmoothing"
    assert body["effects"]["lipstick"]["color"] == "#CC3366"
    assert {"value": "soft-light", "label": "Soft Light (Subtle)"} in body["blendModes"]
    assert [style["value"] for style in body["eyelinerStyles"]] == ["classic", "thin", "thick", "winged"]
    assert body["eyelinerStyles"][3]["label"] == "Winged"
    assert body["swatches"]["eyeliner"][0] == {"name": "Black", "color": "#1A1A1A"}
    assert len(body["swatches"]["highlight"]) == 6


def test_apply_with_supplied_landmarks(client, png_bytes, landmarks_json):
    config = {"effects": {"lipstick": {"opacity": 0.8}, "blush": {"enabled": True}}}
    response = client.post(
        "/api/makeup/apply",
        files={"image": ("face.png", png_bytes, "image/png")},
        data={"makeupConfig": json.dumps(config), "landmarks": landmarks_json},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["drawnEffects"] == ["blush", "eyeliner", "lipstick"]
    assert body["faceMeta"]["bbox"] is not None
    image = _decode_data_url(body["image"])
    assert image.shape == (256, 256, 3)
    assert int(image[172, 128, 1]) < 150


def test_apply_accepts_absent_landmark_entries(client, png_bytes, face_landmarks):
    points = [{"x": float(x), "y": float(y)} for x, y in face_landmarks]
    points[10] = None
    points[468] = None
    response = client.post(
        "/api/makeup/apply",
        files={"image": ("face.png", png_bytes, "image/png")},
        data={"makeupConfig": "{}", "landmarks": json.dumps(points)},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["drawnEffects"] == ["eyeliner", "lipstick"]
    assert body["faceMeta"]["landmarks"][10] is None
    assert len(body["faceMeta"]["landmarks"]) == len(points)


def test_apply_with_only_absent_landmarks_returns_base(client, png_bytes):
    response = client.post(
        "/api/makeup/apply",
        files={"image": ("face.png", png_bytes, "image/png")},
        data={"makeupConfig": "{}", "landmarks": json.dumps([None, None])},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["faceMeta"] is None
    assert body["drawnEffects"] == []


def test_apply_with_none_preset_returns_base(client, png_bytes, landmarks_json):
    response = client.post(
        "/api/makeup/apply",
        files={"image": ("face.png", png_bytes, "image/png")},
        data={"makeupConfig": json.dumps({"preset": "none"}), "landmarks": landmarks_json},
    )
    assert response.status_code == 200
    assert response.json()["drawnEffects"] == []


def test_apply_without_face_returns_base(client, png_bytes, monkeypatch):
    monkeypatch.setattr(main.service, "_analyzer", FakeAnalyzer(None))
    response = client.post(
        "/api/makeup/apply",
        files={"image": ("face.png", png_bytes, "image/png")},
        data={"makeupConfig": "{}"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["faceMeta"] is None
    assert body["drawnEffects"] == []


@pytest.mark.parametrize(
    "config",
    [
        "{not json",
        json.dumps({"effects": "lipstick"}),
        json.dumps({"effects": {"lipstick": {"color": "purple-ish"}}}),
    ],
)
def test_bad_config_is_rejected(client, png_bytes, config):
    response = client.post(
        "/api/makeup/apply",
        files={"image": ("face.png", png_bytes, "image/png")},
        data={"makeupConfig": config},
    )
    assert response.status_code == 400


def test_bad_landmarks_are_rejected(client, png_bytes):
    response = client.post(
        "/api/makeup/apply",
        files={"image": ("face.png", png_bytes, "image/png")},
        data={"makeupConfig": "{}", "landmarks": json.dumps([{"x": "left"}])},
    )
    assert response.status_code == 400


@pytest.mark.parametrize("payload", [b"", b"definitely not an image"])
def test_bad_image_is_rejected(client, payload, landmarks_json):
    response = client.post(
        "/api/makeup/apply",
        files={"image": ("face.png", payload, "image/png")},
        data={"makeupConfig": "{}", "landmarks": landmarks_json},
    )
    assert response.status_code == 400


def test_analyze_without_face_is_422(client, png_bytes, monkeypatch):
    monkeypatch.setattr(main.service, "_analyzer", FakeAnalyzer(None))
    response = client.post("/api/makeup/analyze", files={"image": ("face.png", png_bytes, "image/png")})
    assert response.status_code == 422


def test_analyze_returns_face_meta(client, png_bytes, monkeypatch):
    meta = FaceMeta(bbox=[1, 2, 3, 4], confidence=1.0, landmarks=[FaceLandmark(x=1, y=2, z=0.5)])
    monkeypatch.setattr(main.service, "_analyzer", FakeAnalyzer(meta))
    response = client.post("/api/makeup/analyze", files={"image": ("face.png", png_bytes, "image/png")})
    assert response.status_code == 200
    assert response.json()["faceMeta"]["bbox"] == [1, 2, 3, 4]
