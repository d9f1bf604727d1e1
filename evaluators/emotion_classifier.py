"""表情判断模块，基于笑容/睁眼概率和头部姿态的规则分类"""

import math
from typing import Callable, Dict, List, Tuple

from models.data_models import Emotion

# 规则谓词参数: (smiling, left_eye_open, right_eye_open, head_rotation_x, head_rotation_y)
EmotionRule = Tuple[Callable[[float, float, float, float, float], bool], Emotion]

# 按顺序匹配，首个命中的规则生效
EMOTION_RULES: List[EmotionRule] = [
    (lambda s, l, r, x, y: abs(l - r) > 0.5 and (l < 0.3 or r < 0.3), Emotion.WINK),
    (lambda s, l, r, x, y: abs(x) > 20 and s > 0.3, Emotion.SURPRISED),
    (lambda s, l, r, x, y: s > 0.5, Emotion.HAPPY),
    (lambda s, l, r, x, y: s < 0.1 and l < 0.5 and r < 0.5, Emotion.SAD),
    (lambda s, l, r, x, y: s < 0.2 and abs(y) > 15, Emotion.ANGRY),
    (lambda s, l, r, x, y: s < 0.3 and l > 0.8 and r > 0.8, Emotion.SURPRISED),
]

NEUTRAL_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.5

# 每种表情的置信度公式，参数: (smiling, left_eye_open, right_eye_open)
_CONFIDENCE_FORMULAS: Dict[Emotion, Callable[[float, float, float], float]] = {
    Emotion.HAPPY: lambda s, l, r: s,
    Emotion.SAD: lambda s, l, r: 1.0 - s,
    Emotion.ANGRY: lambda s, l, r: FALLBACK_CONFIDENCE,
    Emotion.SURPRISED: lambda s, l, r: (l + r) / 2.0,
    Emotion.NEUTRAL: lambda s, l, r: NEUTRAL_CONFIDENCE,
    Emotion.FEAR: lambda s, l, r: FALLBACK_CONFIDENCE,
    Emotion.DISGUST: lambda s, l, r: FALLBACK_CONFIDENCE,
    Emotion.WINK: lambda s, l, r: abs(l - r),
}

_missing = set(Emotion) - set(_CONFIDENCE_FORMULAS)
if _missing:
    raise RuntimeError(f"未定义置信度公式的表情: {sorted(e.name for e in _missing)}")


def detect_emotion(
    smiling: float,
    left_eye_open: float,
    right_eye_open: float,
    head_rotation_x: float,
    head_rotation_y: float,
) -> Emotion:
    """
    按 EMOTION_RULES 顺序判断表情。

    Args:
        smiling: 笑容概率
        left_eye_open: 左眼睁开概率
        right_eye_open: 右眼睁开概率
        head_rotation_x: 头部绕 X 轴旋转角（度）
        head_rotation_y: 头部绕 Y 轴旋转角（度）

    Returns:
        首个命中规则对应的 Emotion，均未命中时为 NEUTRAL
    """
    for predicate, emotion in EMOTION_RULES:
        if predicate(smiling, left_eye_open, right_eye_open, head_rotation_x, head_rotation_y):
            return emotion
    return Emotion.NEUTRAL


def calculate_emotion_confidence(
    emotion: Emotion,
    smiling: float,
    left_eye_open: float,
    right_eye_open: float,
) -> float:
    """计算表情置信度，结果截断到 [0, 1]；NaN 视为 0"""
    value = _CONFIDENCE_FORMULAS[emotion](smiling, left_eye_open, right_eye_open)
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, float(value)))
