"""嘴巴状态分析模块，根据嘴宽与双眼外角距离之比估计笑容概率"""

import math

# 嘴巴关键点字典需要的键
MOUTH_KEYS = ("left", "right", "left_eye_outer", "right_eye_outer")


class MouthAnalyzer:
    """计算笑容比值（嘴宽 / 双眼外角距离），并线性换算为笑容概率"""

    def __init__(self, neutral_ratio: float = 0.55, smile_ratio: float = 0.68):
        """初始化平静/微笑参考比值"""
        if smile_ratio <= neutral_ratio:
            raise ValueError(
                f"smile_ratio ({smile_ratio}) 必须大于 neutral_ratio ({neutral_ratio})"
            )
        self.neutral_ratio = neutral_ratio
        self.smile_ratio = smile_ratio

    def calculate_smile_ratio(self, mouth_points: dict) -> float:
        """
        计算笑容比值。

        公式: ratio = |left-right| / |left_eye_outer-right_eye_outer|

        Args:
            mouth_points: 包含 MOUTH_KEYS 的字典，每个值为 (x, y) 元组

        Returns:
            笑容比值，分母为零时返回 0.0
        """
        eye_span = math.dist(mouth_points["left_eye_outer"], mouth_points["right_eye_outer"])

        if eye_span == 0.0:
            return 0.0

        mouth_width = math.dist(mouth_points["left"], mouth_points["right"])
        return mouth_width / eye_span

    def smiling_probability(self, mouth_points: dict) -> float:
        """比值 <= neutral_ratio 时为 0，>= smile_ratio 时为 1，中间线性插值"""
        ratio = self.calculate_smile_ratio(mouth_points)
        probability = (ratio - self.neutral_ratio) / (self.smile_ratio - self.neutral_ratio)
        return max(0.0, min(1.0, probability))
