import math

import numpy as np
import pytest

from swingai.config import AnalysisConfig
from swingai.constants import NUM_LANDMARKS
from swingai.pose import BodyPart, Landmark, PoseFrame

FPS = 30.0

# Lead-wrist keyframes (frame, x, y): rise to the top at 75, lowest point at 108
WRIST_KEYS = [(0, 0.50, 0.70), (75, 0.40, 0.20), (108, 0.50, 0.75), (149, 0.60, 0.30)]
# Shoulder / hip turn keyframes in degrees
SHOULDER_KEYS = [(0, 0.0), (75, 90.0), (108, 0.0), (149, 0.0)]
HIP_KEYS = [(0, 0.0), (75, 45.0), (108, 0.0), (149, 0.0)]
# Hip-center x: toward the trail ankle at the top, over the lead ankle at impact
HIP_SHIFT_KEYS = [(0, 0.50), (8, 0.50), (75, 0.48), (108, 0.535), (149, 0.535)]


def _interp(keys, n, column=1):
    """Piecewise-linear curve through keyframes, stretched to n frames."""
    last = keys[-1][0]
    xs = [k[0] * (n - 1) / float(last) for k in keys]
    return np.interp(np.arange(n), xs, [k[column] for k in keys])


def _frame(wrist_x, wrist_y, shoulder_deg, hip_deg, hip_x, visibility=0.9, timestamp_ms=None):
    lm = [Landmark(0.5, 0.5, 0.0, visibility) for _ in range(NUM_LANDMARKS)]

    def put(part, x, y, z=0.0):
        lm[part] = Landmark(float(x), float(y), float(z), visibility)

    # head
    put(BodyPart.NOSE, 0.5, 0.28)
    for part in (BodyPart.LEFT_EYE_INNER, BodyPart.LEFT_EYE, BodyPart.LEFT_EYE_OUTER, BodyPart.LEFT_EAR):
        put(part, 0.52, 0.27)
    for part in (BodyPart.RIGHT_EYE_INNER, BodyPart.RIGHT_EYE, BodyPart.RIGHT_EYE_OUTER, BodyPart.RIGHT_EAR):
        put(part, 0.48, 0.27)
    put(BodyPart.MOUTH_LEFT, 0.51, 0.3)
    put(BodyPart.MOUTH_RIGHT, 0.49, 0.3)

    # shoulders turn about a center tilted forward in depth
    s = math.radians(shoulder_deg)
    center = np.array([0.5, 0.4, -0.12])
    half = 0.07 * np.array([math.cos(s), 0.0, math.sin(s)])
    left_shoulder, right_shoulder = center + half, center - half
    put(BodyPart.LEFT_SHOULDER, *left_shoulder)
    put(BodyPart.RIGHT_SHOULDER, *right_shoulder)

    # hips
    h = math.radians(hip_deg)
    hip_center = np.array([hip_x, 0.55, 0.0])
    hip_half = 0.05 * np.array([math.cos(h), 0.0, math.sin(h)])
    left_hip, right_hip = hip_center + hip_half, hip_center - hip_half
    put(BodyPart.LEFT_HIP, *left_hip)
    put(BodyPart.RIGHT_HIP, *right_hip)

    # legs: fixed ankles, knees bent forward between hip and ankle
    left_ankle, right_ankle = np.array([0.56, 0.9, 0.0]), np.array([0.44, 0.9, 0.0])
    put(BodyPart.LEFT_ANKLE, *left_ankle)
    put(BodyPart.RIGHT_ANKLE, *right_ankle)
    for side_knee, hip, ankle in ((BodyPart.LEFT_KNEE, left_hip, left_ankle),
                                  (BodyPart.RIGHT_KNEE, right_hip, right_ankle)):
        knee = (hip + ankle) / 2 + np.array([0.03, 0.0, 0.0])
        put(side_knee, knee[0], knee[1], 0.0)
    put(BodyPart.LEFT_HEEL, 0.55, 0.92)
    put(BodyPart.RIGHT_HEEL, 0.45, 0.92)
    put(BodyPart.LEFT_FOOT_INDEX, 0.58, 0.93)
    put(BodyPart.RIGHT_FOOT_INDEX, 0.42, 0.93)

    # arms: both hands on the grip, elbows halfway from shoulder to wrist
    left_wrist = np.array([wrist_x, wrist_y, 0.0])
    right_wrist = np.array([wrist_x - 0.02, wrist_y + 0.02, 0.0])
    put(BodyPart.LEFT_WRIST, *left_wrist)
    put(BodyPart.RIGHT_WRIST, *right_wrist)
    put(BodyPart.LEFT_ELBOW, *(left_shoulder + 0.5 * (left_wrist - left_shoulder)))
    put(BodyPart.RIGHT_ELBOW, *(right_shoulder + 0.5 * (right_wrist - right_shoulder)))
    for part in (BodyPart.LEFT_PINKY, BodyPart.LEFT_INDEX, BodyPart.LEFT_THUMB):
        put(part, *left_wrist)
    for part in (BodyPart.RIGHT_PINKY, BodyPart.RIGHT_INDEX, BodyPart.RIGHT_THUMB):
        put(part, *right_wrist)

    return PoseFrame(landmarks=tuple(lm), timestamp_ms=timestamp_ms)


def build_swing(n=150, visibility=0.9, with_timestamps=False):
    """Deterministic synthetic swing of n frames at 30 fps."""
    wrist_x, wrist_y = _interp(WRIST_KEYS, n, 1), _interp(WRIST_KEYS, n, 2)
    shoulder, hip = _interp(SHOULDER_KEYS, n), _interp(HIP_KEYS, n)
    hip_x = _interp(HIP_SHIFT_KEYS, n)
    frames = []
    for i in range(n):
        stamp = i * 1000.0 / FPS if with_timestamps else None
        frames.append(_frame(wrist_x[i], wrist_y[i], shoulder[i], hip[i], hip_x[i],
                             visibility=visibility, timestamp_ms=stamp))
    return frames


def static_frame(visibility=0.9):
    """A single address-position frame."""
    return _frame(0.5, 0.7, 0.0, 0.0, 0.5, visibility=visibility)


@pytest.fixture
def swing_frames():
    return build_swing()


@pytest.fixture
def swing_timestamps():
    return np.arange(150) * 1000.0 / FPS


@pytest.fixture
def make_swing():
    return build_swing


@pytest.fixture
def default_config():
    return AnalysisConfig()


@pytest.fixture
def address_frame():
    return static_frame()
