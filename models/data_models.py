"""核心数据模型定义"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

Point = Tuple[float, float]


def _freeze(record, name, value):
    """frozen dataclass 的 __post_init__ 中替换字段值"""
    object.__setattr__(record, name, value)


class Emotion(Enum):
    """表情类别（FEAR / DISGUST 目前没有规则会产生）"""
    HAPPY = ("😊", "Happy")
    SAD = ("😢", "Sad")
    ANGRY = ("😠", "Angry")
    SURPRISED = ("😲", "Surprised")
    NEUTRAL = ("😐", "Neutral")
    FEAR = ("😨", "Fearful")
    DISGUST = ("🤢", "Disgusted")
    WINK = ("😉", "Winking")

    @property
    def emoji(self) -> str:
        return self.value[0]

    @property
    def display_name(self) -> str:
        return self.value[1]


class LandmarkType(Enum):
    """单点关键点类型，枚举顺序即输出顺序"""
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    NOSE_BASE = "nose_base"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    LEFT_MOUTH = "left_mouth"
    RIGHT_MOUTH = "right_mouth"
    MOUTH_BOTTOM = "mouth_bottom"
    LEFT_CHEEK = "left_cheek"
    RIGHT_CHEEK = "right_cheek"


class ContourType(Enum):
    """轮廓线类型，枚举顺序即输出顺序"""
    FACE = "face"
    LEFT_EYEBROW_TOP = "left_eyebrow_top"
    LEFT_EYEBROW_BOTTOM = "left_eyebrow_bottom"
    RIGHT_EYEBROW_TOP = "right_eyebrow_top"
    RIGHT_EYEBROW_BOTTOM = "right_eyebrow_bottom"
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    UPPER_LIP_TOP = "upper_lip_top"
    UPPER_LIP_BOTTOM = "upper_lip_bottom"
    LOWER_LIP_TOP = "lower_lip_top"
    LOWER_LIP_BOTTOM = "lower_lip_bottom"
    NOSE_BRIDGE = "nose_bridge"
    NOSE_BOTTOM = "nose_bottom"

    @property
    def is_closed(self) -> bool:
        """脸部外轮廓和眼睛轮廓按闭合多边形绘制"""
        return self in (ContourType.FACE, ContourType.LEFT_EYE, ContourType.RIGHT_EYE)


class HealthLevel(Enum):
    """分数等级，color 为 BGR"""
    EXCELLENT = ("Excellent", (118, 230, 0))
    GOOD = ("Good", (174, 240, 105))
    FAIR = ("Fair", (79, 213, 255))
    POOR = ("Needs Attention", (82, 82, 255))

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def color(self) -> Tuple[int, int, int]:
        return self.value[1]


def to_health_level(score: int) -> HealthLevel:
    """分数映射到等级，边界值 85 / 70 / 50 归入较高等级"""
    if score >= 85:
        return HealthLevel.EXCELLENT
    if score >= 70:
        return HealthLevel.GOOD
    if score >= 50:
        return HealthLevel.FAIR
    return HealthLevel.POOR


@dataclass(frozen=True)
class BoundingBox:
    """人脸包围盒（像素坐标）"""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def normalized(self) -> "BoundingBox":
        """返回 right >= left 且 bottom >= top 的包围盒"""
        return BoundingBox(
            left=min(self.left, self.right),
            top=min(self.top, self.bottom),
            right=max(self.left, self.right),
            bottom=max(self.top, self.bottom),
        )


@dataclass(frozen=True)
class MeshTriangle:
    """网格三角形，三个顶点均为像素坐标"""
    point1: Point
    point2: Point
    point3: Point


@dataclass(frozen=True)
class HeadPose:
    """头部姿态欧拉角（度）: X 为俯仰，Y 为左右转头，Z 为侧倾"""
    rotation_x: float = 0.0
    rotation_y: float = 0.0
    rotation_z: float = 0.0


@dataclass(frozen=True)
class DetectionInput:
    """
    检测器输出的单张人脸原始数据。

    概率字段为 None 表示检测器未给出该值；landmarks / contours 的键为
    检测器自己的标识符，由 extractors.feature_extractor 转换为系统类型。
    """
    bounding_box: BoundingBox
    smiling_probability: Optional[float] = None
    left_eye_open_probability: Optional[float] = None
    right_eye_open_probability: Optional[float] = None
    head_euler_angle_x: float = 0.0
    head_euler_angle_y: float = 0.0
    head_euler_angle_z: float = 0.0
    landmarks: Mapping[str, Point] = field(default_factory=dict)
    contours: Mapping[str, Tuple[Point, ...]] = field(default_factory=dict)
    mesh_points: Tuple[Point, ...] = ()
    mesh_triangles: Tuple[MeshTriangle, ...] = ()

    def __post_init__(self):
        # 转为只读映射和元组，构造后不可修改
        _freeze(self, "landmarks", MappingProxyType({
            key: tuple(position) if position is not None else None
            for key, position in (self.landmarks or {}).items()
        }))
        _freeze(self, "contours", MappingProxyType({
            key: tuple(tuple(p) for p in points) if points is not None else None
            for key, points in (self.contours or {}).items()
        }))
        _freeze(self, "mesh_points", tuple(tuple(p) for p in self.mesh_points))
        _freeze(self, "mesh_triangles", tuple(self.mesh_triangles))


@dataclass(frozen=True)
class Landmark:
    """系统关键点"""
    type: LandmarkType
    position: Point

    def __post_init__(self):
        _freeze(self, "position", tuple(self.position))


@dataclass(frozen=True)
class Contour:
    """系统轮廓线"""
    type: ContourType
    points: Tuple[Point, ...]

    def __post_init__(self):
        _freeze(self, "points", tuple(tuple(p) for p in self.points))

    @property
    def is_drawable(self) -> bool:
        """少于 2 个点的轮廓为退化轮廓，绘制时跳过"""
        return len(self.points) >= 2


@dataclass(frozen=True)
class FaceCondition:
    """面部状态评分"""
    overall_score: int = 0
    symmetry_score: int = 0
    skin_health_estimate: int = 0
    eye_health_score: int = 0
    facial_proportion_score: int = 0
    suggestions: Tuple[str, ...] = ()

    def __post_init__(self):
        _freeze(self, "suggestions", tuple(self.suggestions))


@dataclass(frozen=True)
class AnalysisResult:
    """单帧分析结果，默认值即未检测到人脸时的结果"""
    face_detected: bool = False
    bounding_box: Optional[BoundingBox] = None
    emotion: Emotion = Emotion.NEUTRAL
    emotion_confidence: float = 0.0
    smiling_probability: float = 0.0
    left_eye_open_probability: float = 0.0
    right_eye_open_probability: float = 0.0
    head_rotation_x: float = 0.0
    head_rotation_y: float = 0.0
    head_rotation_z: float = 0.0
    face_condition: FaceCondition = field(default_factory=FaceCondition)
    landmarks: Tuple[Landmark, ...] = ()
    contours: Tuple[Contour, ...] = ()
    mesh_points: Tuple[Point, ...] = ()
    mesh_triangles: Tuple[MeshTriangle, ...] = ()

    def __post_init__(self):
        _freeze(self, "landmarks", tuple(self.landmarks))
        _freeze(self, "contours", tuple(self.contours))
        _freeze(self, "mesh_points", tuple(self.mesh_points))
        _freeze(self, "mesh_triangles", tuple(self.mesh_triangles))

    def to_dict(self) -> dict:
        """转换为可 JSON 序列化的字典"""
        condition = asdict(self.face_condition)
        condition["suggestions"] = list(self.face_condition.suggestions)
        return {
            "face_detected": self.face_detected,
            "bounding_box": asdict(self.bounding_box) if self.bounding_box else None,
            "emotion": self.emotion.display_name,
            "emotion_emoji": self.emotion.emoji,
            "emotion_confidence": self.emotion_confidence,
            "smiling_probability": self.smiling_probability,
            "left_eye_open_probability": self.left_eye_open_probability,
            "right_eye_open_probability": self.right_eye_open_probability,
            "head_rotation_x": self.head_rotation_x,
            "head_rotation_y": self.head_rotation_y,
            "head_rotation_z": self.head_rotation_z,
            "face_condition": condition,
            "health_level": to_health_level(self.face_condition.overall_score).label,
            "landmarks": [
                {"type": lm.type.value, "position": list(lm.position)}
                for lm in self.landmarks
            ],
            "contours": [
                {"type": c.type.value, "points": [list(p) for p in c.points]}
                for c in self.contours
            ],
            "mesh_point_count": len(self.mesh_points),
            "mesh_triangle_count": len(self.mesh_triangles),
        }
