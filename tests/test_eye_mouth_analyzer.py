"""EyeAnalyzer / MouthAnalyzer 单元测试"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from detectors.eye_analyzer import EyeAnalyzer
from detectors.mouth_analyzer import MouthAnalyzer


def _eye(v):
    """水平宽度 4、两条竖直距离均为 2v 的眼睛，EAR = v / 2"""
    return [(0.0, 0.0), (1.0, -v), (3.0, -v), (4.0, 0.0), (3.0, v), (1.0, v)]


def _mouth(width, eye_span=100.0):
    return {
        "left_eye_outer": (0.0, 0.0),
        "right_eye_outer": (eye_span, 0.0),
        "left": (20.0, 80.0),
        "right": (20.0 + width, 80.0),
    }


class TestEyeAnalyzer:
    def test_ear(self):
        assert EyeAnalyzer().calculate_ear(_eye(0.5)) == pytest.approx(0.25)

    def test_zero_width_eye(self):
        assert EyeAnalyzer().calculate_ear([(1.0, 1.0)] * 6) == 0.0

    def test_wide_open_eye(self):
        assert EyeAnalyzer().open_probability(_eye(1.0)) == 1.0

    def test_closed_eye(self):
        assert EyeAnalyzer().open_probability(_eye(0.0)) == 0.0

    def test_half_open_eye(self):
        # EAR 0.215 位于 0.15 和 0.28 的正中间
        assert EyeAnalyzer().open_probability(_eye(0.43)) == pytest.approx(0.5)

    def test_invalid_reference_values(self):
        with pytest.raises(ValueError):
            EyeAnalyzer(open_ear=0.1, closed_ear=0.2)

    @given(st.floats(min_value=0.0, max_value=10.0))
    def test_probability_in_unit_interval(self, v):
        assert 0.0 <= EyeAnalyzer().open_probability(_eye(v)) <= 1.0


class TestMouthAnalyzer:
    def test_smile_ratio(self):
        assert MouthAnalyzer().calculate_smile_ratio(_mouth(60.0)) == pytest.approx(0.6)

    def test_zero_eye_span(self):
        assert MouthAnalyzer().calculate_smile_ratio(_mouth(60.0, eye_span=0.0)) == 0.0

    def test_neutral_mouth(self):
        assert MouthAnalyzer().smiling_probability(_mouth(50.0)) == 0.0

    def test_wide_smile(self):
        assert MouthAnalyzer().smiling_probability(_mouth(80.0)) == 1.0

    def test_half_smile(self):
        assert MouthAnalyzer().smiling_probability(_mouth(61.5)) == pytest.approx(0.5)

    def test_invalid_reference_values(self):
        with pytest.raises(ValueError):
            MouthAnalyzer(neutral_ratio=0.7, smile_ratio=0.6)
