"""Flask Web 前端测试"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

import web_app
from main import _DEFAULTS
from models.data_models import BoundingBox, DetectionInput

MP_PATCH = "detectors.face_detector.mp"


def _happy_face():
    return DetectionInput(
        bounding_box=BoundingBox(100, 80, 300, 320),
        smiling_probability=0.9,
        left_eye_open_probability=0.9,
        right_eye_open_probability=0.9,
    )


@pytest.fixture
def web_system():
    with patch(MP_PATCH):
        current = web_app.WebAnalysisSystem(config=dict(_DEFAULTS))
    previous = web_app.system
    web_app.system = current
    yield current
    web_app.system = previous


@pytest.fixture
def client(web_system):
    web_app.app.config["TESTING"] = True
    with web_app.app.test_client() as c:
        yield c


class TestRoutes:
    def test_index(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert b"Face Analyzer" in response.data

    def test_data_before_start(self, client):
        data = client.get("/api/data").get_json()
        assert data["face_detected"] is False
        assert data["running"] is False
        assert data["emotion"] == "Neutral"
        assert data["face_condition"]["suggestions"] == []

    def test_mesh_toggles(self, client, web_system):
        data = client.post("/api/mesh", json={}).get_json()
        assert data["mesh_enabled"] is True
        assert web_system.face_detector.mesh_enabled is True
        assert web_system.renderer.show_mesh is True

        data = client.post("/api/mesh").get_json()
        assert data["mesh_enabled"] is False

    def test_mesh_explicit_value(self, client, web_system):
        data = client.post("/api/mesh", json={"enabled": False}).get_json()
        assert data["mesh_enabled"] is False
        assert web_system.config["mesh_enabled"] is False

    def test_overlay_updates_renderer(self, client, web_system):
        data = client.post("/api/overlay", json={"show_contours": False}).get_json()
        assert data["show_contours"] is False
        assert data["show_landmarks"] is True
        assert web_system.renderer.show_contours is False
        assert web_system.renderer.show_landmarks is True

    def test_logs(self, client, web_system):
        web_system._add_log("info", "first")
        web_system._add_log("warning", "second")

        data = client.get("/api/logs").get_json()
        assert data["total"] == 2
        assert [e["message"] for e in data["logs"]] == ["first", "second"]

        data = client.get("/api/logs?since=1").get_json()
        assert [e["message"] for e in data["logs"]] == ["second"]

    def test_start_fails_without_camera(self, client):
        capture = MagicMock()
        capture.isOpened.return_value = False
        with patch("web_app.cv2.VideoCapture", return_value=capture):
            data = client.post("/api/start").get_json()
        assert data["success"] is False

    def test_stop(self, client):
        data = client.post("/api/stop").get_json()
        assert data["success"] is True


class TestProcessFrame:
    def test_face_detected_updates_data(self, web_system):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        with patch.object(web_system.face_detector, "detect", return_value=[_happy_face()]):
            result = web_system.process_frame(frame)

        assert result.face_detected is True
        data = web_system.get_data()
        assert data["face_detected"] is True
        assert data["emotion"] == "Happy"
        assert web_system.get_frame()[:2] == b"\xff\xd8"

    def test_state_change_logs(self, web_system):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        with patch.object(web_system.face_detector, "detect", return_value=[_happy_face()]):
            web_system.process_frame(frame)
            web_system.process_frame(frame)
        with patch.object(web_system.face_detector, "detect", return_value=[]):
            web_system.process_frame(frame)

        messages = [e["message"] for e in web_system.get_logs()[0]]
        assert messages.count("检测到人脸") == 1
        assert "人脸丢失" in messages
        assert sum(m.startswith("表情: Happy") for m in messages) == 1

    def test_stop_resets_latest_result(self, web_system):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        with patch.object(web_system.face_detector, "detect", return_value=[_happy_face()]):
            web_system.process_frame(frame)
        web_system.stop()
        assert web_system.get_data()["face_detected"] is False

    def test_log_buffer_bounded(self, web_system):
        for i in range(web_system.MAX_LOG_ENTRIES + 10):
            web_system._add_log("info", str(i))
        logs, total = web_system.get_logs()
        assert total == web_system.MAX_LOG_ENTRIES
        assert logs[-1]["message"] == str(web_system.MAX_LOG_ENTRIES + 9)
