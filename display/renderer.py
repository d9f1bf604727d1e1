"""界面渲染模块 - 在视频帧上绘制包围盒、轮廓、关键点、网格和分析面板。"""

from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from models.data_models import (
    AnalysisResult,
    BoundingBox,
    Contour,
    ContourType,
    MeshTriangle,
    to_health_level,
)

Color = Tuple[int, int, int]

MESH_COLOR: Color = (180, 229, 0)
LANDMARK_COLOR: Color = (255, 255, 0)

# 轮廓颜色（BGR），覆盖全部 ContourType
CONTOUR_COLORS: Dict[ContourType, Color] = {
    ContourType.FACE: MESH_COLOR,
    ContourType.LEFT_EYEBROW_TOP: (255, 0, 255),
    ContourType.LEFT_EYEBROW_BOTTOM: (255, 0, 255),
    ContourType.RIGHT_EYEBROW_TOP: (255, 0, 255),
    ContourType.RIGHT_EYEBROW_BOTTOM: (255, 0, 255),
    ContourType.LEFT_EYE: (255, 255, 0),
    ContourType.RIGHT_EYE: (255, 255, 0),
    ContourType.UPPER_LIP_TOP: (0, 0, 255),
    ContourType.UPPER_LIP_BOTTOM: (0, 0, 255),
    ContourType.LOWER_LIP_TOP: (0, 0, 255),
    ContourType.LOWER_LIP_BOTTOM: (0, 0, 255),
    ContourType.NOSE_BRIDGE: (0, 255, 255),
    ContourType.NOSE_BOTTOM: (0, 255, 255),
}


def format_value(v: float) -> str:
    """格式化浮点数为两位小数字符串。"""
    return f"{v:.2f}"


def format_percent(v: float) -> str:
    """将 [0, 1] 的置信度格式化为整数百分比。"""
    return f"{int(v * 100)}%"


class DisplayRenderer:
    """
    在视频帧上绘制分析结果。

    分析结果的坐标属于检测时的图像尺寸，渲染器记住最近一次的图像宽高，
    按输出帧尺寸缩放坐标。
    """

    def __init__(
        self,
        show_contours: bool = True,
        show_landmarks: bool = True,
        show_mesh: bool = False,
    ):
        self.show_contours = show_contours
        self.show_landmarks = show_landmarks
        self.show_mesh = show_mesh
        self._image_width = 0
        self._image_height = 0

    def set_image_size(self, width: int, height: int) -> None:
        """记录检测图像的宽高，用于坐标缩放。"""
        self._image_width = width
        self._image_height = height

    def _scale(self, frame: np.ndarray) -> Tuple[float, float]:
        h, w = frame.shape[:2]
        if self._image_width <= 0 or self._image_height <= 0:
            return 1.0, 1.0
        return w / self._image_width, h / self._image_height

    def render(self, frame: np.ndarray, result: AnalysisResult) -> np.ndarray:
        """渲染分析结果到视频帧，返回渲染后的帧图像。"""
        output = frame.copy()

        if result.face_detected:
            sx, sy = self._scale(output)

            if result.bounding_box is not None:
                self._draw_bounding_box(output, result.bounding_box, sx, sy)

            if self.show_contours:
                for contour in result.contours:
                    self._draw_contour(output, contour, sx, sy)

            if self.show_landmarks:
                for landmark in result.landmarks:
                    x, y = landmark.position
                    cv2.circle(output, (int(x * sx), int(y * sy)), 4, LANDMARK_COLOR, -1)

            if self.show_mesh:
                for triangle in result.mesh_triangles:
                    self._draw_mesh_triangle(output, triangle, sx, sy)

            self._draw_panel(output, result)
        else:
            self._draw_no_face(output)

        return output

    @staticmethod
    def _draw_bounding_box(frame: np.ndarray, box: BoundingBox, sx: float, sy: float) -> None:
        """只绘制包围盒的四个角。"""
        left, top = int(box.left * sx), int(box.top * sy)
        right, bottom = int(box.right * sx), int(box.bottom * sy)
        corner = max(1, min(40, (right - left) // 4, (bottom - top) // 4))

        for (x, y, dx, dy) in (
            (left, top, 1, 1),
            (right, top, -1, 1),
            (left, bottom, 1, -1),
            (right, bottom, -1, -1),
        ):
            cv2.line(frame, (x, y), (x + dx * corner, y), MESH_COLOR, 2)
            cv2.line(frame, (x, y), (x, y + dy * corner), MESH_COLOR, 2)

    @staticmethod
    def _draw_contour(frame: np.ndarray, contour: Contour, sx: float, sy: float) -> None:
        """绘制轮廓线，退化轮廓跳过；脸部外轮廓和眼睛闭合。"""
        if not contour.is_drawable:
            return

        pts = np.array(
            [(int(x * sx), int(y * sy)) for x, y in contour.points], dtype=np.int32
        ).reshape((-1, 1, 2))
        cv2.polylines(frame, [pts], contour.type.is_closed, CONTOUR_COLORS[contour.type], 1)

    @staticmethod
    def _draw_mesh_triangle(frame: np.ndarray, triangle: MeshTriangle, sx: float, sy: float) -> None:
        pts = np.array([
            (int(triangle.point1[0] * sx), int(triangle.point1[1] * sy)),
            (int(triangle.point2[0] * sx), int(triangle.point2[1] * sy)),
            (int(triangle.point3[0] * sx), int(triangle.point3[1] * sy)),
        ], dtype=np.int32).reshape((-1, 1, 2))
        cv2.polylines(frame, [pts], True, MESH_COLOR, 1)

    @staticmethod
    def _draw_panel(frame: np.ndarray, result: AnalysisResult) -> None:
        """在左上角绘制表情、总分等级和子分数。"""
        condition = result.face_condition
        level = to_health_level(condition.overall_score)
        lines = [
            (f"{result.emotion.display_name} ({format_percent(result.emotion_confidence)})", (0, 255, 0)),
            (f"Score: {condition.overall_score} {level.label}", level.color),
            (f"Symmetry: {condition.symmetry_score}", (255, 255, 255)),
            (f"Eyes: {condition.eye_health_score}", (255, 255, 255)),
            (f"Proportion: {condition.facial_proportion_score}", (255, 255, 255)),
            (f"Skin: {condition.skin_health_estimate}", (255, 255, 255)),
        ]
        y = 30
        for text, color in lines:
            cv2.putText(frame, text, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)
            y += 26

        h = frame.shape[0]
        if condition.suggestions:
            cv2.putText(
                frame, _ascii(condition.suggestions[0]), (10, h - 15),
                cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 0), 1,
            )

    @staticmethod
    def _draw_no_face(frame: np.ndarray) -> None:
        cv2.putText(
            frame, "No face detected", (10, 30),
            cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 255), 2,
        )


def _ascii(text: Optional[str]) -> str:
    """OpenCV 字体不支持 emoji，去掉非 ASCII 字符。"""
    if not text:
        return ""
    return text.encode("ascii", "ignore").decode("ascii").strip()
