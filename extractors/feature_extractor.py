"""特征提取模块，将检测器的关键点/轮廓标识符映射为系统类型"""

from typing import Dict, List, Mapping, Optional, Sequence

from models.data_models import Contour, ContourType, Landmark, LandmarkType, Point

# 检测器关键点标识符 -> 系统关键点类型（按 LandmarkType 枚举顺序）
LANDMARK_IDS: Dict[str, LandmarkType] = {
    "left_eye": LandmarkType.LEFT_EYE,
    "right_eye": LandmarkType.RIGHT_EYE,
    "nose_base": LandmarkType.NOSE_BASE,
    "left_ear": LandmarkType.LEFT_EAR,
    "right_ear": LandmarkType.RIGHT_EAR,
    "mouth_left": LandmarkType.LEFT_MOUTH,
    "mouth_right": LandmarkType.RIGHT_MOUTH,
    "mouth_bottom": LandmarkType.MOUTH_BOTTOM,
    "left_cheek": LandmarkType.LEFT_CHEEK,
    "right_cheek": LandmarkType.RIGHT_CHEEK,
}

# 检测器轮廓标识符 -> 系统轮廓类型（按 ContourType 枚举顺序）
CONTOUR_IDS: Dict[str, ContourType] = {
    "face": ContourType.FACE,
    "left_eyebrow_top": ContourType.LEFT_EYEBROW_TOP,
    "left_eyebrow_bottom": ContourType.LEFT_EYEBROW_BOTTOM,
    "right_eyebrow_top": ContourType.RIGHT_EYEBROW_TOP,
    "right_eyebrow_bottom": ContourType.RIGHT_EYEBROW_BOTTOM,
    "left_eye": ContourType.LEFT_EYE,
    "right_eye": ContourType.RIGHT_EYE,
    "upper_lip_top": ContourType.UPPER_LIP_TOP,
    "upper_lip_bottom": ContourType.UPPER_LIP_BOTTOM,
    "lower_lip_top": ContourType.LOWER_LIP_TOP,
    "lower_lip_bottom": ContourType.LOWER_LIP_BOTTOM,
    "nose_bridge": ContourType.NOSE_BRIDGE,
    "nose_bottom": ContourType.NOSE_BOTTOM,
}

_LANDMARK_ID_BY_TYPE = {t: k for k, t in LANDMARK_IDS.items()}
_CONTOUR_ID_BY_TYPE = {t: k for k, t in CONTOUR_IDS.items()}


def extract_landmarks(raw_landmarks: Optional[Mapping[str, Point]]) -> List[Landmark]:
    """
    将检测器关键点映射为系统关键点列表。

    Args:
        raw_landmarks: 检测器标识符 -> (x, y) 像素坐标；可以为 None

    Returns:
        Landmark 列表，按 LandmarkType 枚举顺序排列；未识别的标识符被忽略
    """
    if not raw_landmarks:
        return []

    landmarks = []
    for landmark_type in LandmarkType:
        position = raw_landmarks.get(_LANDMARK_ID_BY_TYPE[landmark_type])
        if position is not None:
            landmarks.append(Landmark(type=landmark_type, position=tuple(position)))
    return landmarks


def extract_contours(raw_contours: Optional[Mapping[str, Sequence[Point]]]) -> List[Contour]:
    """
    将检测器轮廓映射为系统轮廓列表。

    退化轮廓（少于 2 个点）照常输出，由绘制方通过 Contour.is_drawable 跳过。
    """
    if not raw_contours:
        return []

    contours = []
    for contour_type in ContourType:
        points = raw_contours.get(_CONTOUR_ID_BY_TYPE[contour_type])
        if points is not None:
            contours.append(Contour(
                type=contour_type,
                points=[tuple(p) for p in points],
            ))
    return contours
