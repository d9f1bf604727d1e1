"""数据模型单元测试"""

import json

import pytest

from models.data_models import (
    AnalysisResult,
    BoundingBox,
    Contour,
    ContourType,
    DetectionInput,
    Emotion,
    FaceCondition,
    HealthLevel,
    Landmark,
    LandmarkType,
    to_health_level,
)


class TestHealthLevel:
    @pytest.mark.parametrize("score, expected", [
        (100, HealthLevel.EXCELLENT),
        (85, HealthLevel.EXCELLENT),
        (84, HealthLevel.GOOD),
        (70, HealthLevel.GOOD),
        (69, HealthLevel.FAIR),
        (50, HealthLevel.FAIR),
        (49, HealthLevel.POOR),
        (0, HealthLevel.POOR),
    ])
    def test_score_to_level(self, score, expected):
        assert to_health_level(score) is expected

    def test_labels(self):
        assert HealthLevel.EXCELLENT.label == "Excellent"
        assert HealthLevel.GOOD.label == "Good"
        assert HealthLevel.FAIR.label == "Fair"
        assert HealthLevel.POOR.label == "Needs Attention"


class TestEmotion:
    def test_has_eight_members(self):
        assert len(Emotion) == 8

    def test_display_names(self):
        assert Emotion.HAPPY.display_name == "Happy"
        assert Emotion.SAD.display_name == "Sad"
        assert Emotion.NEUTRAL.display_name == "Neutral"
        assert Emotion.FEAR.display_name == "Fearful"
        assert Emotion.DISGUST.display_name == "Disgusted"
        assert Emotion.WINK.display_name == "Winking"

    def test_emoji(self):
        assert Emotion.HAPPY.emoji == "😊"
        assert Emotion.WINK.emoji == "😉"


class TestEnumerations:
    def test_landmark_types(self):
        assert [t.name for t in LandmarkType] == [
            "LEFT_EYE", "RIGHT_EYE", "NOSE_BASE", "LEFT_EAR", "RIGHT_EAR",
            "LEFT_MOUTH", "RIGHT_MOUTH", "MOUTH_BOTTOM", "LEFT_CHEEK", "RIGHT_CHEEK",
        ]

    def test_thirteen_contour_types(self):
        assert len(ContourType) == 13

    def test_closed_contours(self):
        closed = {t for t in ContourType if t.is_closed}
        assert closed == {ContourType.FACE, ContourType.LEFT_EYE, ContourType.RIGHT_EYE}


class TestBoundingBox:
    def test_size(self):
        box = BoundingBox(left=10, top=20, right=110, bottom=70)
        assert box.width == 100
        assert box.height == 50

    def test_normalized_swaps_inverted_edges(self):
        box = BoundingBox(left=110, top=70, right=10, bottom=20).normalized()
        assert box == BoundingBox(left=10, top=20, right=110, bottom=70)

    def test_normalized_keeps_valid_box(self):
        box = BoundingBox(left=1, top=2, right=3, bottom=4)
        assert box.normalized() == box


class TestContour:
    def test_single_point_is_not_drawable(self):
        assert not Contour(type=ContourType.FACE, points=[(1.0, 1.0)]).is_drawable

    def test_empty_is_not_drawable(self):
        assert not Contour(type=ContourType.NOSE_BRIDGE, points=[]).is_drawable

    def test_two_points_are_drawable(self):
        assert Contour(type=ContourType.NOSE_BRIDGE, points=[(0.0, 0.0), (1.0, 1.0)]).is_drawable


class TestDefaults:
    def test_face_condition_defaults(self):
        condition = FaceCondition()
        assert condition.overall_score == 0
        assert condition.symmetry_score == 0
        assert condition.skin_health_estimate == 0
        assert condition.eye_health_score == 0
        assert condition.facial_proportion_score == 0
        assert condition.suggestions == ()

    def test_analysis_result_defaults_to_no_face(self):
        result = AnalysisResult()
        assert result.face_detected is False
        assert result.bounding_box is None
        assert result.emotion is Emotion.NEUTRAL
        assert result.emotion_confidence == 0.0
        assert result.face_condition == FaceCondition()
        assert result.landmarks == ()
        assert result.contours == ()
        assert result.mesh_points == ()
        assert result.mesh_triangles == ()


class TestImmutability:
    def test_caller_list_changes_do_not_leak_into_condition(self):
        suggestions = ["a"]
        condition = FaceCondition(suggestions=suggestions)
        suggestions.append("b")
        assert condition.suggestions == ("a",)

    def test_result_sequences_are_tuples(self):
        landmarks = [Landmark(type=LandmarkType.NOSE_BASE, position=[5.0, 6.0])]
        result = AnalysisResult(face_detected=True, landmarks=landmarks)
        landmarks.clear()

        assert len(result.landmarks) == 1
        assert result.landmarks[0].position == (5.0, 6.0)
        with pytest.raises(AttributeError):
            result.landmarks.append(None)

    def test_contour_points_are_tuples(self):
        points = [[0.0, 0.0], [1.0, 1.0]]
        contour = Contour(type=ContourType.FACE, points=points)
        points.append([2.0, 2.0])
        assert contour.points == ((0.0, 0.0), (1.0, 1.0))

    def test_detection_maps_are_read_only(self):
        raw = {"nose_base": [1.0, 2.0]}
        detection = DetectionInput(
            bounding_box=BoundingBox(0, 0, 1, 1),
            landmarks=raw,
            contours={"face": [[0.0, 0.0], [1.0, 1.0]]},
            mesh_points=[[0.0, 0.0]],
        )
        raw["left_eye"] = (3.0, 4.0)

        assert dict(detection.landmarks) == {"nose_base": (1.0, 2.0)}
        assert detection.contours["face"] == ((0.0, 0.0), (1.0, 1.0))
        assert detection.mesh_points == ((0.0, 0.0),)
        with pytest.raises(TypeError):
            detection.landmarks["right_eye"] = (0.0, 0.0)

    def test_missing_entries_kept_as_none(self):
        detection = DetectionInput(
            bounding_box=BoundingBox(0, 0, 1, 1),
            landmarks={"left_eye": None},
            contours={"face": None},
        )
        assert detection.landmarks["left_eye"] is None
        assert detection.contours["face"] is None

    def test_equal_records_compare_equal(self):
        a = DetectionInput(bounding_box=BoundingBox(0, 0, 1, 1), landmarks={"nose_base": (1.0, 2.0)})
        b = DetectionInput(bounding_box=BoundingBox(0, 0, 1, 1), landmarks={"nose_base": [1.0, 2.0]})
        assert a == b


class TestToDict:
    def test_default_result_is_json_serialisable(self):
        data = AnalysisResult().to_dict()
        json.dumps(data)
        assert data["face_detected"] is False
        assert data["bounding_box"] is None
        assert data["emotion"] == "Neutral"
        assert data["health_level"] == "Needs Attention"

    def test_populated_result(self):
        result = AnalysisResult(
            face_detected=True,
            bounding_box=BoundingBox(1, 2, 3, 4),
            emotion=Emotion.HAPPY,
            emotion_confidence=0.9,
            face_condition=FaceCondition(overall_score=90, suggestions=["a"]),
            landmarks=[Landmark(type=LandmarkType.NOSE_BASE, position=(5.0, 6.0))],
            contours=[Contour(type=ContourType.FACE, points=[(1.0, 1.0), (2.0, 2.0)])],
        )
        data = result.to_dict()
        json.dumps(data)
        assert data["bounding_box"] == {"left": 1, "top": 2, "right": 3, "bottom": 4}
        assert data["emotion"] == "Happy"
        assert data["health_level"] == "Excellent"
        assert data["face_condition"]["suggestions"] == ["a"]
        assert data["landmarks"] == [{"type": "nose_base", "position": [5.0, 6.0]}]
        assert data["contours"][0]["type"] == "face"
        assert data["mesh_point_count"] == 0
