import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest import mock
from urllib.error import URLError

import numpy as np

from pushup_tracker import pose
from pushup_tracker.pose import KEYPOINT_NAMES, arm_sample, elbow_angle, joint_sample

from helpers import arm_keypoints


class _FakeTensor:
    def __init__(self, arr):
        self._arr = arr

    def cpu(self):
        return self

    def numpy(self):
        return self._arr


class _FakeKeypoints:
    def __init__(self, people):
        self.data = [_FakeTensor(p) for p in people]

    def __len__(self):
        return len(self.data)


class ElbowAngleTests(unittest.TestCase):
    def test_right_angle(self) -> None:
        self.assertAlmostEqual(elbow_angle((0, -10), (0, 0), (10, 0)), 90.0)

    def test_straight_arm(self) -> None:
        self.assertAlmostEqual(elbow_angle((0, -10), (0, 0), (0, 10)), 180.0)

    def test_accepts_keypoint_triples(self) -> None:
        self.assertAlmostEqual(elbow_angle((0, -10, 0.9), (0, 0, 0.9), (10, 0, 0.9)), 90.0)

    def test_zero_length_limb_returns_none(self) -> None:
        self.assertIsNone(elbow_angle((0, 0), (0, 0), (10, 0)))


class ArmSampleTests(unittest.TestCase):
    def test_sample_carries_angle_and_y_coordinates(self) -> None:
        sample = arm_sample(arm_keypoints(120.0, shoulder_y=200.0), "left")
        self.assertAlmostEqual(sample.angle, 120.0, places=6)
        self.assertEqual(sample.shoulder_y, 200.0)
        self.assertEqual(sample.elbow_y, 300.0)
        self.assertAlmostEqual(sample.wrist_y, 350.0, places=6)
        self.assertAlmostEqual(sample.confidence, 0.9)

    def test_confidence_is_minimum_of_joints(self) -> None:
        kp_dict = arm_keypoints(120.0)
        x, y, _ = kp_dict["left_elbow"]
        kp_dict["left_elbow"] = (x, y, 0.6)
        self.assertAlmostEqual(arm_sample(kp_dict, "left").confidence, 0.6)

    def test_low_confidence_joint_rejects_arm(self) -> None:
        kp_dict = arm_keypoints(120.0)
        x, y, _ = kp_dict["left_wrist"]
        kp_dict["left_wrist"] = (x, y, 0.3)
        self.assertIsNone(arm_sample(kp_dict, "left"))

    def test_missing_joint_rejects_arm(self) -> None:
        kp_dict = arm_keypoints(120.0)
        del kp_dict["left_shoulder"]
        self.assertIsNone(arm_sample(kp_dict, "left"))
        self.assertIsNone(arm_sample(kp_dict, "left", min_confidence=0.0))

    def test_missing_joint_is_rejected_with_zero_floor(self) -> None:
        kp_dict = arm_keypoints(120.0, sides=("left",))
        del kp_dict["left_wrist"]
        self.assertIsNone(arm_sample(kp_dict, "left", min_confidence=0.0))
        self.assertIsNone(joint_sample(kp_dict, min_confidence=0.0))

    def test_nan_confidence_rejects_arm(self) -> None:
        kp_dict = arm_keypoints(120.0)
        x, y, _ = kp_dict["left_elbow"]
        kp_dict["left_elbow"] = (x, y, float("nan"))
        self.assertIsNone(arm_sample(kp_dict, "left"))
        self.assertIsNone(arm_sample(kp_dict, "left", min_confidence=0.0))

    def test_nan_arm_does_not_spoil_the_other_arm(self) -> None:
        kp_dict = arm_keypoints(100.0, sides=("left",))
        kp_dict.update(arm_keypoints(150.0, sides=("right",)))
        x, y, _ = kp_dict["right_wrist"]
        kp_dict["right_wrist"] = (x, y, float("nan"))
        sample = joint_sample(kp_dict)
        self.assertAlmostEqual(sample.angle, 100.0, places=6)
        self.assertAlmostEqual(sample.confidence, 0.9)


class JointSampleTests(unittest.TestCase):
    def test_both_arms_are_averaged(self) -> None:
        kp_dict = arm_keypoints(100.0, shoulder_y=200.0, sides=("left",))
        kp_dict.update(arm_keypoints(140.0, shoulder_y=220.0, conf=0.7, sides=("right",)))
        sample = joint_sample(kp_dict)
        self.assertAlmostEqual(sample.angle, 120.0, places=6)
        self.assertAlmostEqual(sample.shoulder_y, 210.0)
        self.assertAlmostEqual(sample.elbow_y, 310.0)
        self.assertAlmostEqual(sample.confidence, 0.8)

    def test_single_visible_arm_is_used_as_is(self) -> None:
        kp_dict = arm_keypoints(95.0, sides=("right",))
        sample = joint_sample(kp_dict)
        self.assertEqual(sample, arm_sample(kp_dict, "right"))

    def test_low_confidence_arm_is_ignored(self) -> None:
        kp_dict = arm_keypoints(100.0, sides=("left",))
        kp_dict.update(arm_keypoints(160.0, conf=0.2, sides=("right",)))
        self.assertAlmostEqual(joint_sample(kp_dict).angle, 100.0, places=6)

    def test_no_usable_arm_yields_none(self) -> None:
        self.assertIsNone(joint_sample(None))
        self.assertIsNone(joint_sample({}))
        self.assertIsNone(joint_sample(arm_keypoints(120.0, conf=0.1)))


class KeypointsDictTests(unittest.TestCase):
    def test_first_person_is_converted_to_named_triples(self) -> None:
        arr = np.arange(len(KEYPOINT_NAMES) * 3, dtype=np.float32).reshape(-1, 3)
        result = SimpleNamespace(keypoints=_FakeKeypoints([arr, arr + 1]))
        kp_dict = pose.get_keypoints_dict(result)
        self.assertEqual(len(kp_dict), len(KEYPOINT_NAMES))
        self.assertEqual(kp_dict["nose"], (0.0, 1.0, 2.0))
        self.assertEqual(kp_dict["left_shoulder"], (15.0, 16.0, 17.0))

    def test_no_people_returns_none(self) -> None:
        self.assertIsNone(pose.get_keypoints_dict(SimpleNamespace(keypoints=None)))
        self.assertIsNone(pose.get_keypoints_dict(SimpleNamespace(keypoints=_FakeKeypoints([]))))


class EnsureModelPathTests(unittest.TestCase):
    def test_existing_file_is_returned(self) -> None:
        with tempfile.NamedTemporaryFile(suffix=".pt") as fh:
            self.assertEqual(pose.ensure_model_path(fh.name), Path(fh.name))

    def test_download_failure_raises_runtime_error(self) -> None:
        target = Path(tempfile.mkdtemp()) / pose.DEFAULT_MODEL_NAME
        with mock.patch.object(pose, "urlretrieve", side_effect=URLError("offline")), \
                mock.patch("builtins.print"):
            with self.assertRaises(RuntimeError):
                pose.ensure_model_path(target)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
