"""人脸检测模块，基于 MediaPipe FaceMesh，输出供分析使用的 DetectionInput"""

import logging
from typing import Dict, List, Optional, Tuple

import cv2
import mediapipe as mp
import numpy as np

from detectors.eye_analyzer import EyeAnalyzer
from detectors.head_pose_analyzer import HeadPoseAnalyzer
from detectors.mouth_analyzer import MouthAnalyzer
from models.data_models import BoundingBox, DetectionInput, MeshTriangle

logger = logging.getLogger(__name__)

# 关键点索引常量（EAR 计算用 6 点）
LEFT_EYE_INDICES = [33, 160, 158, 133, 153, 144]
RIGHT_EYE_INDICES = [362, 385, 387, 263, 373, 380]

# 笑容比值用到的关键点
SMILE_INDICES = {
    "left": 61,
    "right": 291,
    "left_eye_outer": 33,
    "right_eye_outer": 263,
}

HEAD_POSE_INDICES = {
    "nose_tip": 1,
    "chin": 152,
    "left_eye_corner": 33,
    "right_eye_corner": 263,
    "left_mouth": 61,
    "right_mouth": 291,
}

# 检测器关键点标识符 -> FaceMesh 索引（多个索引取均值）
LANDMARK_INDICES: Dict[str, List[int]] = {
    "left_eye": [33, 133],
    "right_eye": [362, 263],
    "nose_base": [2],
    "left_ear": [234],
    "right_ear": [454],
    "mouth_left": [61],
    "mouth_right": [291],
    "mouth_bottom": [17],
    "left_cheek": [50],
    "right_cheek": [280],
}

# 检测器轮廓标识符 -> 有序 FaceMesh 索引
CONTOUR_INDICES: Dict[str, List[int]] = {
    "face": [10, 338, 297, 332, 284, 251, 389, 356, 454, 323, 361, 288,
             397, 365, 379, 378, 400, 377, 152, 148, 176, 149, 150, 136,
             172, 58, 132, 93, 234, 127, 162, 21, 54, 103, 67, 109],
    "left_eyebrow_top": [70, 63, 105, 66, 107],
    "left_eyebrow_bottom": [46, 53, 52, 65, 55],
    "right_eyebrow_top": [300, 293, 334, 296, 336],
    "right_eyebrow_bottom": [276, 283, 282, 295, 285],
    "left_eye": [33, 246, 161, 160, 159, 158, 157, 173,
                 133, 155, 154, 153, 145, 144, 163, 7],
    "right_eye": [362, 398, 384, 385, 386, 387, 388, 466,
                  263, 249, 390, 373, 374, 380, 381, 382],
    "upper_lip_top": [61, 185, 40, 39, 37, 0, 267, 269, 270, 409, 291],
    "upper_lip_bottom": [78, 191, 80, 81, 82, 13, 312, 311, 310, 415, 308],
    "lower_lip_top": [78, 95, 88, 178, 87, 14, 317, 402, 318, 324, 308],
    "lower_lip_bottom": [61, 146, 91, 181, 84, 17, 314, 405, 321, 375, 291],
    "nose_bridge": [168, 6, 197, 195, 5, 4],
    "nose_bottom": [98, 97, 2, 326, 327],
}


class FaceDetector:
    """使用 MediaPipe FaceMesh 检测人脸，并估计笑容/睁眼概率与头部姿态"""

    def __init__(
        self,
        max_num_faces: int = 1,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        mesh_enabled: bool = False,
        eye_analyzer: Optional[EyeAnalyzer] = None,
        mouth_analyzer: Optional[MouthAnalyzer] = None,
    ):
        """初始化 MediaPipe FaceMesh 及各几何分析器"""
        self._face_mesh = mp.solutions.face_mesh.FaceMesh(
            max_num_faces=max_num_faces,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
            refine_landmarks=False,
        )
        self.mesh_enabled = mesh_enabled
        self.eye_analyzer = eye_analyzer or EyeAnalyzer()
        self.mouth_analyzer = mouth_analyzer or MouthAnalyzer()
        self.head_pose_analyzer = HeadPoseAnalyzer()

    def detect(self, frame: np.ndarray) -> List[DetectionInput]:
        """
        检测单帧图像中的人脸。

        Args:
            frame: BGR 格式的 OpenCV 图像帧

        Returns:
            DetectionInput 列表，顺序与 MediaPipe 输出一致；未检测到人脸时为空列表
        """
        # BGR -> RGB
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False

        results = self._face_mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return []

        return [
            self._build_detection(face, frame.shape)
            for face in results.multi_face_landmarks
        ]

    def _build_detection(self, face, frame_shape: Tuple) -> DetectionInput:
        """将一张 FaceMesh 人脸转换为 DetectionInput。"""
        h, w = frame_shape[0], frame_shape[1]

        # 将归一化坐标转换为像素坐标
        all_landmarks = [(lm.x * w, lm.y * h) for lm in face.landmark]

        xs = [p[0] for p in all_landmarks]
        ys = [p[1] for p in all_landmarks]
        bounding_box = BoundingBox(left=min(xs), top=min(ys), right=max(xs), bottom=max(ys))

        left_eye = [all_landmarks[i] for i in LEFT_EYE_INDICES]
        right_eye = [all_landmarks[i] for i in RIGHT_EYE_INDICES]
        smile_points = {key: all_landmarks[idx] for key, idx in SMILE_INDICES.items()}

        # 提取头部姿态关键点（按固定顺序）
        head_pose_points = [
            all_landmarks[HEAD_POSE_INDICES["nose_tip"]],
            all_landmarks[HEAD_POSE_INDICES["chin"]],
            all_landmarks[HEAD_POSE_INDICES["left_eye_corner"]],
            all_landmarks[HEAD_POSE_INDICES["right_eye_corner"]],
            all_landmarks[HEAD_POSE_INDICES["left_mouth"]],
            all_landmarks[HEAD_POSE_INDICES["right_mouth"]],
        ]
        pose = self.head_pose_analyzer.estimate_pose(head_pose_points, frame_shape)

        landmarks = {
            key: _mean_point([all_landmarks[i] for i in indices])
            for key, indices in LANDMARK_INDICES.items()
        }
        contours = {
            key: [all_landmarks[i] for i in indices]
            for key, indices in CONTOUR_INDICES.items()
        }

        mesh_points: List[Tuple[float, float]] = []
        mesh_triangles: List[MeshTriangle] = []
        if self.mesh_enabled:
            mesh_points = list(all_landmarks)
            mesh_triangles = triangulate(mesh_points, (h, w))

        return DetectionInput(
            bounding_box=bounding_box,
            smiling_probability=self.mouth_analyzer.smiling_probability(smile_points),
            left_eye_open_probability=self.eye_analyzer.open_probability(left_eye),
            right_eye_open_probability=self.eye_analyzer.open_probability(right_eye),
            head_euler_angle_x=pose.rotation_x,
            head_euler_angle_y=pose.rotation_y,
            head_euler_angle_z=pose.rotation_z,
            landmarks=landmarks,
            contours=contours,
            mesh_points=mesh_points,
            mesh_triangles=mesh_triangles,
        )

    def close(self):
        """释放 MediaPipe 资源"""
        self._face_mesh.close()


def _mean_point(points: List[Tuple[float, float]]) -> Tuple[float, float]:
    n = len(points)
    return (sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


def triangulate(points: List[Tuple[float, float]], frame_size: Tuple[int, int]) -> List[MeshTriangle]:
    """
    对网格点做 Delaunay 三角剖分。

    Args:
        points: 像素坐标点
        frame_size: (h, w)，超出画面的点不参与剖分

    Returns:
        MeshTriangle 列表
    """
    h, w = frame_size
    subdiv = cv2.Subdiv2D((0, 0, int(w), int(h)))
    inside = [(x, y) for x, y in points if 0 <= x < w and 0 <= y < h]
    if len(inside) < 3:
        return []

    for x, y in inside:
        subdiv.insert((float(x), float(y)))

    triangles = []
    for x1, y1, x2, y2, x3, y3 in subdiv.getTriangleList():
        vertices = ((x1, y1), (x2, y2), (x3, y3))
        # Subdiv2D 会生成连接外部虚拟顶点的三角形
        if all(0 <= vx < w and 0 <= vy < h for vx, vy in vertices):
            triangles.append(MeshTriangle(
                point1=(float(x1), float(y1)),
                point2=(float(x2), float(y2)),
                point3=(float(x3), float(y3)),
            ))
    logger.debug("网格三角剖分: %d 点 -> %d 三角形", len(inside), len(triangles))
    return triangles
