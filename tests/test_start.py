"""start.py 依赖检查测试"""

import builtins
from unittest.mock import patch

from start import check_dependencies

_real_import = builtins.__import__


def _import_without(*blocked):
    def fake_import(name, *args, **kwargs):
        if name in blocked:
            raise ImportError(name)
        return _real_import(name, *args, **kwargs)
    return fake_import


def test_all_dependencies_present():
    assert check_dependencies() == []


def test_missing_packages_reported_by_distribution_name():
    with patch("builtins.__import__", side_effect=_import_without("cv2", "mediapipe")):
        missing = check_dependencies()
    assert missing == ["opencv-python", "mediapipe"]
