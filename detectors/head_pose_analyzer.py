"""头部姿态分析模块，使用 solvePnP 计算头部欧拉角"""

import math
from typing import List, Tuple

import cv2
import numpy as np

from models.data_models import HeadPose


# 标准 3D 人脸模型点
_MODEL_POINTS = np.array([
    (0.0, 0.0, 0.0),          # 鼻尖
    (0.0, -330.0, -65.0),     # 下巴
    (-225.0, 170.0, -135.0),  # 左眼角
    (225.0, 170.0, -135.0),   # 右眼角
    (-150.0, -150.0, -125.0), # 左嘴角
    (150.0, -150.0, -125.0),  # 右嘴角
], dtype=np.float64)


class HeadPoseAnalyzer:
    """使用 solvePnP 估计头部绕 X / Y / Z 轴的旋转角"""

    def estimate_pose(self, face_points_2d: List[Tuple], frame_shape: Tuple) -> HeadPose:
        """
        估计头部姿态。

        Args:
            face_points_2d: 6 个 2D 关键点坐标 [(x, y), ...]，顺序与 _MODEL_POINTS 一致
            frame_shape: 图像尺寸 (h, w, c) 或 (h, w)

        Returns:
            HeadPose；solvePnP 失败时三个角度均为 0
        """
        h, w = frame_shape[0], frame_shape[1]

        # 构建相机内参矩阵
        focal_length = max(h, w)
        center = (w / 2.0, h / 2.0)
        camera_matrix = np.array([
            [focal_length, 0, center[0]],
            [0, focal_length, center[1]],
            [0, 0, 1],
        ], dtype=np.float64)

        dist_coeffs = np.zeros((4, 1), dtype=np.float64)

        image_points = np.array(face_points_2d, dtype=np.float64)

        success, rotation_vector, _ = cv2.solvePnP(
            _MODEL_POINTS, image_points, camera_matrix, dist_coeffs,
            flags=cv2.SOLVEPNP_ITERATIVE,
        )

        if not success:
            return HeadPose()

        # 旋转向量 → 旋转矩阵 → 欧拉角
        rotation_matrix, _ = cv2.Rodrigues(rotation_vector)
        x, y, z = self._rotation_matrix_to_euler(rotation_matrix)
        return HeadPose(rotation_x=x, rotation_y=y, rotation_z=z)

    @staticmethod
    def _rotation_matrix_to_euler(rotation_matrix: np.ndarray) -> Tuple[float, float, float]:
        """
        从旋转矩阵提取绕 X / Y / Z 轴的欧拉角，单位为度。

        使用 ZYX 顺序分解。模型点 Y 轴朝上而图像 Y 轴朝下，
        正脸时 X 角约为 ±180°，这里折回到 [-90, 90]。
        """
        sy = math.sqrt(rotation_matrix[0, 0] ** 2 + rotation_matrix[1, 0] ** 2)

        if sy > 1e-6:
            x = math.atan2(rotation_matrix[2, 1], rotation_matrix[2, 2])
            y = math.atan2(-rotation_matrix[2, 0], sy)
            z = math.atan2(rotation_matrix[1, 0], rotation_matrix[0, 0])
        else:
            x = math.atan2(-rotation_matrix[1, 2], rotation_matrix[1, 1])
            y = math.atan2(-rotation_matrix[2, 0], sy)
            z = 0.0

        # 弧度转角度
        x = math.degrees(x)
        y = math.degrees(y)
        z = math.degrees(z)

        if x > 90.0:
            x -= 180.0
        elif x < -90.0:
            x += 180.0

        return x, y, z
