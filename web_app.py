"""Flask Web 前端 - 人脸表情与面部状态分析"""

import datetime
import logging
import os
import threading
import time

import cv2
from flask import Flask, Response, jsonify, render_template, request

from display.renderer import DisplayRenderer
from evaluators.face_scorer import analyze_faces
from main import build_detector, load_config
from models.data_models import AnalysisResult

logger = logging.getLogger(__name__)

app = Flask(__name__, template_folder="web/templates")


class WebAnalysisSystem:
    """Web 版分析系统，支持 MJPEG 视频流推送和最新结果查询 API。"""

    MAX_LOG_ENTRIES = 200

    def __init__(self, config=None):
        self.config = config or load_config(os.environ.get("FACE_ANALYZER_CONFIG"))
        self._cap = None
        self._thread = None
        self._running = False
        self._lock = threading.Lock()
        self._latest_frame = None
        self._latest_result = AnalysisResult()
        self._logs = []
        self._log_lock = threading.Lock()
        self._prev_state = {"face_detected": False, "emotion": None}
        self.face_detector = build_detector(self.config)
        self.renderer = DisplayRenderer(
            show_contours=self.config["show_contours"],
            show_landmarks=self.config["show_landmarks"],
            show_mesh=self.config["mesh_enabled"],
        )

    def start(self):
        """启动摄像头和处理线程。"""
        if self._running:
            return True
        self._cap = cv2.VideoCapture(self.config["camera_index"])
        if not self._cap.isOpened():
            self._add_log("danger", "无法打开摄像头")
            return False
        self._running = True
        self._add_log("info", "系统启动，摄像头已开启")
        self._thread = threading.Thread(target=self._process_loop, daemon=True)
        self._thread.start()
        return True

    def stop(self):
        """停止分析。"""
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._cap and self._cap.isOpened():
            self._cap.release()
        self._cap = None
        with self._lock:
            self._latest_result = AnalysisResult()
        self._add_log("info", "系统已停止")

    def _process_loop(self):
        """后台处理循环。"""
        while self._running:
            if not self._cap or not self._cap.isOpened():
                break
            ret, frame = self._cap.read()
            if not ret:
                continue
            self.process_frame(frame)

    def process_frame(self, frame):
        """分析并渲染一帧，更新最新结果和 JPEG 帧。"""
        h, w = frame.shape[:2]
        self.renderer.set_image_size(w, h)
        result = analyze_faces(self.face_detector.detect(frame))
        rendered = self.renderer.render(frame, result)

        _, jpeg = cv2.imencode(".jpg", rendered, [cv2.IMWRITE_JPEG_QUALITY, self.config["jpeg_quality"]])
        with self._lock:
            self._latest_result = result
            self._latest_frame = jpeg.tobytes()

        self._check_state_changes(result)
        return result

    def _add_log(self, level, message):
        """添加一条系统日志。level: info / warning / danger"""
        entry = {
            "time": datetime.datetime.now().strftime("%H:%M:%S"),
            "level": level,
            "message": message,
        }
        logger.info("[%s] %s", level, message)
        with self._log_lock:
            self._logs.append(entry)
            if len(self._logs) > self.MAX_LOG_ENTRIES:
                self._logs = self._logs[-self.MAX_LOG_ENTRIES:]

    def _check_state_changes(self, result):
        """检测人脸出现/丢失和表情变化并记录日志。"""
        prev = self._prev_state

        if result.face_detected and not prev["face_detected"]:
            self._add_log("info", "检测到人脸")
        elif not result.face_detected and prev["face_detected"]:
            self._add_log("warning", "人脸丢失")

        emotion = result.emotion if result.face_detected else None
        if emotion is not None and emotion != prev["emotion"]:
            self._add_log(
                "info",
                f"表情: {emotion.display_name} ({result.emotion_confidence:.2f})",
            )

        self._prev_state = {"face_detected": result.face_detected, "emotion": emotion}

    def get_logs(self, since=0):
        """获取日志，since 为起始索引。"""
        with self._log_lock:
            return self._logs[since:], len(self._logs)

    def get_frame(self):
        with self._lock:
            return self._latest_frame

    def get_data(self):
        with self._lock:
            result = self._latest_result
        data = result.to_dict()
        data["running"] = self._running
        return data

    def set_mesh_enabled(self, enabled):
        self.config["mesh_enabled"] = enabled
        self.face_detector.mesh_enabled = enabled
        self.renderer.show_mesh = enabled

    def set_overlay(self, show_contours=None, show_landmarks=None):
        if show_contours is not None:
            self.config["show_contours"] = show_contours
            self.renderer.show_contours = show_contours
        if show_landmarks is not None:
            self.config["show_landmarks"] = show_landmarks
            self.renderer.show_landmarks = show_landmarks


# 全局分析系统实例（首次请求时创建）
system = None
_system_lock = threading.Lock()


def get_system():
    global system
    with _system_lock:
        if system is None:
            system = WebAnalysisSystem()
        return system


# ---- Flask 路由 ----

@app.route("/")
def index():
    return render_template("index.html")


@app.route("/api/start", methods=["POST"])
def api_start():
    ok = get_system().start()
    return jsonify({"success": ok, "message": "摄像头启动成功" if ok else "无法打开摄像头"})


@app.route("/api/stop", methods=["POST"])
def api_stop():
    get_system().stop()
    return jsonify({"success": True, "message": "分析已停止"})


@app.route("/api/data")
def api_data():
    return jsonify(get_system().get_data())


@app.route("/api/mesh", methods=["POST"])
def api_mesh():
    data = request.get_json(force=True, silent=True) or {}
    current = get_system()
    enabled = bool(data.get("enabled", not current.config["mesh_enabled"]))
    current.set_mesh_enabled(enabled)
    current._add_log("info", "网格已开启" if enabled else "网格已关闭")
    return jsonify({"success": True, "mesh_enabled": enabled})


@app.route("/api/overlay", methods=["POST"])
def api_overlay():
    data = request.get_json(force=True, silent=True) or {}
    current = get_system()
    current.set_overlay(
        show_contours=data.get("show_contours"),
        show_landmarks=data.get("show_landmarks"),
    )
    return jsonify({
        "success": True,
        "show_contours": current.config["show_contours"],
        "show_landmarks": current.config["show_landmarks"],
    })


@app.route("/api/logs")
def api_logs():
    since = request.args.get("since", 0, type=int)
    logs, total = get_system().get_logs(since)
    return jsonify({"logs": logs, "total": total})


@app.route("/video_feed")
def video_feed():
    current = get_system()

    def generate():
        while True:
            frame = current.get_frame()
            if frame is not None:
                yield (b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + frame + b"\r\n")
            time.sleep(0.03)
    return Response(generate(), mimetype="multipart/x-mixed-replace; boundary=frame")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(host="0.0.0.0", port=5000, debug=False, threaded=True)
