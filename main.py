"""人脸分析系统入口文件"""

import argparse
import json
import logging
import sys

import cv2

from detectors.eye_analyzer import EyeAnalyzer
from detectors.face_detector import FaceDetector
from display.renderer import DisplayRenderer
from evaluators.face_scorer import analyze_faces

logger = logging.getLogger(__name__)

# 默认配置
_DEFAULTS = {
    "camera_index": 0,
    "max_num_faces": 1,
    "min_detection_confidence": 0.5,
    "min_tracking_confidence": 0.5,
    "mesh_enabled": False,
    "show_contours": True,
    "show_landmarks": True,
    "eye_open_ear": 0.28,
    "eye_closed_ear": 0.15,
    "jpeg_quality": 80,
}


def load_config(config_path=None):
    """从 JSON 配置文件加载参数，缺失字段使用默认值。"""
    config = dict(_DEFAULTS)

    if config_path is None:
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("配置文件不存在 %s，使用默认配置", config_path)
        return config
    except json.JSONDecodeError:
        logger.warning("配置文件格式错误 %s，使用默认配置", config_path)
        return config

    if not isinstance(data, dict):
        logger.warning("配置文件顶层必须是对象 %s，使用默认配置", config_path)
        return config

    # 用配置文件中的值覆盖默认值
    for key in _DEFAULTS:
        if key in data and data[key] is not None:
            config[key] = data[key]

    return config


def build_detector(config):
    """根据配置创建 FaceDetector。"""
    return FaceDetector(
        max_num_faces=config["max_num_faces"],
        min_detection_confidence=config["min_detection_confidence"],
        min_tracking_confidence=config["min_tracking_confidence"],
        mesh_enabled=config["mesh_enabled"],
        eye_analyzer=EyeAnalyzer(
            open_ear=config["eye_open_ear"],
            closed_ear=config["eye_closed_ear"],
        ),
    )


class AnalysisSystem:
    """人脸分析系统主程序，协调检测、分析与渲染并管理视频流主循环。"""

    def __init__(self, config_path=None, mesh_enabled=None, camera_index=None):
        self._cap = None
        self.config = load_config(config_path)
        if mesh_enabled is not None:
            self.config["mesh_enabled"] = mesh_enabled
        if camera_index is not None:
            self.config["camera_index"] = camera_index

        self.face_detector = build_detector(self.config)
        self.renderer = DisplayRenderer(
            show_contours=self.config["show_contours"],
            show_landmarks=self.config["show_landmarks"],
            show_mesh=self.config["mesh_enabled"],
        )

    def analyze_frame(self, frame):
        """分析单帧图像，返回 AnalysisResult。"""
        h, w = frame.shape[:2]
        self.renderer.set_image_size(w, h)
        return analyze_faces(self.face_detector.detect(frame))

    def analyze_image(self, image_path):
        """分析单张图片文件，无法读取时返回 None。"""
        frame = cv2.imread(image_path)
        if frame is None:
            logger.error("无法读取图片 %s", image_path)
            return None
        return self.analyze_frame(frame)

    def run(self):
        """启动主检测循环。"""
        self._cap = cv2.VideoCapture(self.config["camera_index"])

        if not self._cap.isOpened():
            logger.error("无法打开摄像头 %s", self.config["camera_index"])
            sys.exit(1)

        logger.info("摄像头已开启，按 q 退出")
        try:
            self._main_loop()
        finally:
            self.stop()

    def _main_loop(self):
        """视频流处理主循环。"""
        while True:
            ret, frame = self._cap.read()
            if not ret:
                continue

            result = self.analyze_frame(frame)
            rendered = self.renderer.render(frame, result)

            cv2.imshow("Face Analyzer", rendered)

            # 按 q 退出
            if cv2.waitKey(1) & 0xFF == ord("q"):
                break

    def stop(self):
        """释放摄像头资源、关闭所有窗口、关闭人脸检测器。"""
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        cv2.destroyAllWindows()
        self.face_detector.close()
        logger.info("系统已停止")


def main(argv=None):
    parser = argparse.ArgumentParser(description="人脸表情与面部状态分析")
    parser.add_argument("--config", type=str, default=None, help="JSON 配置文件路径")
    parser.add_argument("--image", type=str, default=None, help="分析单张图片并输出 JSON")
    parser.add_argument("--mesh", action="store_true", default=None, help="输出网格三角形")
    parser.add_argument("--camera", type=int, default=None, help="摄像头编号")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="日志级别",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    system = AnalysisSystem(
        config_path=args.config,
        mesh_enabled=args.mesh,
        camera_index=args.camera,
    )

    if args.image is None:
        system.run()
        return

    try:
        result = system.analyze_image(args.image)
    finally:
        system.face_detector.close()

    if result is None:
        sys.exit(1)
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
