"""眼睛状态分析模块，负责计算 EAR 值并换算为睁眼概率"""

import math
from typing import List, Tuple


class EyeAnalyzer:
    """计算单只眼睛的 EAR 值，并按闭眼/睁眼参考值线性换算为睁眼概率"""

    def __init__(self, open_ear: float = 0.28, closed_ear: float = 0.15):
        """初始化睁眼/闭眼 EAR 参考值"""
        if open_ear <= closed_ear:
            raise ValueError(
                f"open_ear ({open_ear}) 必须大于 closed_ear ({closed_ear})"
            )
        self.open_ear = open_ear
        self.closed_ear = closed_ear

    def calculate_ear(self, eye_points: List[Tuple[float, float]]) -> float:
        """
        计算单只眼睛的 EAR 值。

        公式: EAR = (|p2-p6| + |p3-p5|) / (2 * |p1-p4|)

        Args:
            eye_points: 6 个眼睛轮廓关键点 [(x,y), ...]

        Returns:
            EAR 值，分母为零时返回 0.0
        """
        p1, p2, p3, p4, p5, p6 = eye_points

        vertical_1 = math.dist(p2, p6)
        vertical_2 = math.dist(p3, p5)
        horizontal = math.dist(p1, p4)

        if horizontal == 0.0:
            return 0.0

        return (vertical_1 + vertical_2) / (2.0 * horizontal)

    def open_probability(self, eye_points: List[Tuple[float, float]]) -> float:
        """
        估计睁眼概率。

        EAR <= closed_ear 时为 0，EAR >= open_ear 时为 1，中间线性插值。
        """
        ear = self.calculate_ear(eye_points)
        probability = (ear - self.closed_ear) / (self.open_ear - self.closed_ear)
        return max(0.0, min(1.0, probability))
