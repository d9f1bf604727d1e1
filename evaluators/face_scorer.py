"""面部状态评分模块，计算对称性、眼部、比例、肤质估计分数并生成建议"""

import logging
import math
from typing import Callable, List, Optional, Sequence, Tuple

from evaluators.emotion_classifier import calculate_emotion_confidence, detect_emotion
from extractors.feature_extractor import extract_contours, extract_landmarks
from models.data_models import (
    AnalysisResult,
    DetectionInput,
    FaceCondition,
    Landmark,
    LandmarkType,
    Point,
)

logger = logging.getLogger(__name__)

# 关键点缺失或几何退化时的中性分数
DEFAULT_GEOMETRY_SCORE = 75
# 眼部评分中缺失睁眼概率的默认值
DEFAULT_EYE_OPEN = 0.5
GOLDEN_RATIO = 1.618
SKIN_BASE_SCORE = 75

# 总分权重（百分比）: 对称性 / 眼部 / 比例 / 肤质
OVERALL_WEIGHTS = (30, 25, 25, 20)

SUGGESTION_CENTER = "Try to keep your face centered in the frame"
SUGGESTION_TIRED_EYES = "Your eyes appear tired - consider taking breaks from screens"
SUGGESTION_FACE_CAMERA = "Face the camera directly for better analysis"
SUGGESTION_HEAD_LEVEL = "Keep your head level for accurate results"
SUGGESTION_SMILE = "Smiling can enhance your facial features! 😊"
SUGGESTION_ALL_GOOD = "Your face looks great! Keep smiling! ✨"

# 规则谓词参数: (symmetry_score, eye_health_score, head_rotation_x, head_rotation_y, smiling)
SuggestionRule = Tuple[Callable[[int, int, float, float, float], bool], str]

# 各条件相互独立，按顺序逐条检查
SUGGESTION_RULES: List[SuggestionRule] = [
    (lambda sym, eye, x, y, s: sym < 70, SUGGESTION_CENTER),
    (lambda sym, eye, x, y, s: eye < 60, SUGGESTION_TIRED_EYES),
    (lambda sym, eye, x, y, s: abs(y) > 10, SUGGESTION_FACE_CAMERA),
    (lambda sym, eye, x, y, s: abs(x) > 15, SUGGESTION_HEAD_LEVEL),
    (lambda sym, eye, x, y, s: s < 0.3, SUGGESTION_SMILE),
]


def _probability(value: Optional[float], default: float) -> float:
    """缺失（None）或非有限值的概率替换为默认值"""
    if value is None or not math.isfinite(value):
        return default
    return float(value)


def _round_half_up(value: float) -> int:
    """四舍五入，.5 一律进位（内置 round() 对 .5 取偶）"""
    return int(math.floor(value + 0.5))


def _clamp_score(value: float) -> int:
    """四舍五入并截断到 [0, 100]，非有限值视为 0"""
    if not math.isfinite(value):
        return 0
    return max(0, min(100, _round_half_up(value)))


def _find(landmarks: Sequence[Landmark], landmark_type: LandmarkType) -> Optional[Point]:
    for landmark in landmarks:
        if landmark.type == landmark_type:
            return landmark.position
    return None


def calculate_symmetry_score(landmarks: Sequence[Landmark]) -> int:
    """
    根据双眼到鼻基点的距离比计算对称性分数。

    缺少左眼、右眼或鼻基点时返回 DEFAULT_GEOMETRY_SCORE。
    坐标含 NaN / inf 时同样返回默认分数。鼻基点与某只眼重合时比值为 0。
    """
    left_eye = _find(landmarks, LandmarkType.LEFT_EYE)
    right_eye = _find(landmarks, LandmarkType.RIGHT_EYE)
    nose = _find(landmarks, LandmarkType.NOSE_BASE)

    if left_eye is None or right_eye is None or nose is None:
        return DEFAULT_GEOMETRY_SCORE

    left_dist = math.dist(left_eye, nose)
    right_dist = math.dist(right_eye, nose)
    if not (math.isfinite(left_dist) and math.isfinite(right_dist)):
        return DEFAULT_GEOMETRY_SCORE

    longer = max(left_dist, right_dist)
    if longer == 0.0:
        return 0

    ratio = min(left_dist, right_dist) / longer
    return _clamp_score(ratio * 100)


def calculate_eye_health_score(face: DetectionInput) -> int:
    """睁眼程度占 60%，双眼平衡度占 40%；缺失概率按 0.5 计"""
    left = _probability(face.left_eye_open_probability, DEFAULT_EYE_OPEN)
    right = _probability(face.right_eye_open_probability, DEFAULT_EYE_OPEN)

    avg_openness = (left + right) / 2.0
    eye_balance = 1.0 - abs(left - right)

    return _clamp_score((avg_openness * 0.6 + eye_balance * 0.4) * 100)


def calculate_proportion_score(landmarks: Sequence[Landmark]) -> int:
    """
    计算面部比例分数。

    公式: ratio = |右眼.x - 左眼.x| / |嘴底.y - 鼻基.y|，与黄金比例 1.618 比较，
    score = clamp(1 - |ratio - 1.618| / 1.618, 0, 1) * 100

    Returns:
        缺少关键点、坐标非有限值或鼻嘴垂直距离为 0 时返回 DEFAULT_GEOMETRY_SCORE
    """
    left_eye = _find(landmarks, LandmarkType.LEFT_EYE)
    right_eye = _find(landmarks, LandmarkType.RIGHT_EYE)
    nose = _find(landmarks, LandmarkType.NOSE_BASE)
    mouth_bottom = _find(landmarks, LandmarkType.MOUTH_BOTTOM)

    if left_eye is None or right_eye is None or nose is None or mouth_bottom is None:
        return DEFAULT_GEOMETRY_SCORE

    eye_distance = abs(right_eye[0] - left_eye[0])
    nose_to_mouth = abs(mouth_bottom[1] - nose[1])

    if not (math.isfinite(eye_distance) and math.isfinite(nose_to_mouth)):
        return DEFAULT_GEOMETRY_SCORE
    if nose_to_mouth == 0.0:
        return DEFAULT_GEOMETRY_SCORE

    actual_ratio = eye_distance / nose_to_mouth
    ratio_score = 1.0 - abs(actual_ratio - GOLDEN_RATIO) / GOLDEN_RATIO
    ratio_score = max(0.0, min(1.0, ratio_score))

    return _clamp_score(ratio_score * 100)


def estimate_skin_health(face: DetectionInput) -> int:
    """
    肤质估计分数。

    这不是对皮肤状况的真实测量，只是由笑容和睁眼概率推出的代理值:
    75 + round(smiling * 10) + round((left + right) * 5)，缺失概率按 0 计，
    .5 进位。
    """
    smiling = _probability(face.smiling_probability, 0.0)
    left = _probability(face.left_eye_open_probability, 0.0)
    right = _probability(face.right_eye_open_probability, 0.0)

    smile_bonus = _round_half_up(smiling * 10)
    eye_bonus = _round_half_up((left + right) * 5)

    return _clamp_score(SKIN_BASE_SCORE + smile_bonus + eye_bonus)


def generate_suggestions(
    symmetry_score: int,
    eye_health_score: int,
    head_rotation_x: float,
    head_rotation_y: float,
    smiling: float,
) -> List[str]:
    """按 SUGGESTION_RULES 顺序生成建议，均未触发时返回一条肯定性建议"""
    suggestions = [
        message
        for predicate, message in SUGGESTION_RULES
        if predicate(symmetry_score, eye_health_score, head_rotation_x, head_rotation_y, smiling)
    ]
    if not suggestions:
        suggestions.append(SUGGESTION_ALL_GOOD)
    return suggestions


def calculate_overall_score(
    symmetry_score: int,
    eye_health_score: int,
    proportion_score: int,
    skin_health_estimate: int,
) -> int:
    """
    按 OVERALL_WEIGHTS 加权并截断小数部分。

    用整数运算，避免 62.00 这类整数和在浮点下变成 61.999... 而少一分。
    """
    w_sym, w_eye, w_prop, w_skin = OVERALL_WEIGHTS
    weighted = (
        symmetry_score * w_sym
        + eye_health_score * w_eye
        + proportion_score * w_prop
        + skin_health_estimate * w_skin
    )
    return max(0, min(100, weighted // 100))


def calculate_face_condition(face: DetectionInput, landmarks: Sequence[Landmark]) -> FaceCondition:
    """汇总四项子分数，计算加权总分并生成建议。"""
    symmetry_score = calculate_symmetry_score(landmarks)
    eye_health_score = calculate_eye_health_score(face)
    proportion_score = calculate_proportion_score(landmarks)
    skin_health_estimate = estimate_skin_health(face)

    overall_score = calculate_overall_score(
        symmetry_score, eye_health_score, proportion_score, skin_health_estimate,
    )

    suggestions = generate_suggestions(
        symmetry_score,
        eye_health_score,
        face.head_euler_angle_x,
        face.head_euler_angle_y,
        _probability(face.smiling_probability, 0.0),
    )

    return FaceCondition(
        overall_score=overall_score,
        symmetry_score=symmetry_score,
        skin_health_estimate=skin_health_estimate,
        eye_health_score=eye_health_score,
        facial_proportion_score=proportion_score,
        suggestions=suggestions,
    )


def analyze_face(face: DetectionInput) -> AnalysisResult:
    """
    分析单张人脸。

    Args:
        face: 检测器给出的人脸数据

    Returns:
        AnalysisResult(face_detected=True, ...)

    Raises:
        ValueError: face 为 None（调用方声称检测到人脸却未传入数据）
    """
    if face is None:
        raise ValueError("analyze_face() 需要一个 DetectionInput，收到 None")

    smiling = _probability(face.smiling_probability, 0.0)
    left_eye_open = _probability(face.left_eye_open_probability, 0.0)
    right_eye_open = _probability(face.right_eye_open_probability, 0.0)

    emotion = detect_emotion(
        smiling, left_eye_open, right_eye_open,
        face.head_euler_angle_x, face.head_euler_angle_y,
    )
    emotion_confidence = calculate_emotion_confidence(
        emotion, smiling, left_eye_open, right_eye_open,
    )

    landmarks = extract_landmarks(face.landmarks)
    contours = extract_contours(face.contours)
    face_condition = calculate_face_condition(face, landmarks)

    return AnalysisResult(
        face_detected=True,
        bounding_box=face.bounding_box.normalized(),
        emotion=emotion,
        emotion_confidence=emotion_confidence,
        smiling_probability=smiling,
        left_eye_open_probability=left_eye_open,
        right_eye_open_probability=right_eye_open,
        head_rotation_x=face.head_euler_angle_x,
        head_rotation_y=face.head_euler_angle_y,
        head_rotation_z=face.head_euler_angle_z,
        face_condition=face_condition,
        landmarks=landmarks,
        contours=contours,
        mesh_points=face.mesh_points,
        mesh_triangles=face.mesh_triangles,
    )


def analyze_faces(faces: Optional[Sequence[DetectionInput]]) -> AnalysisResult:
    """
    分析一帧的检测结果。

    未检测到人脸时直接返回默认结果；多张人脸时只分析第一张。
    """
    if not faces:
        return AnalysisResult()

    if len(faces) > 1:
        logger.debug("检测到 %d 张人脸，只分析第一张", len(faces))

    return analyze_face(faces[0])
