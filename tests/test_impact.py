import numpy as np
import pytest

from swingai.club import ClubPathEstimator
from swingai.impact import ImpactConsensusDetector
from swingai.models import ClubPath, ClubPathPoint
from swingai.pose import BodyPart, Landmark, PoseFrame


def _path(frames, timestamps=None):
    return ClubPathEstimator().estimate(frames, timestamps)


def _without_legs(frame):
    landmarks = list(frame.landmarks)
    for part in (BodyPart.LEFT_HIP, BodyPart.RIGHT_HIP, BodyPart.LEFT_KNEE, BodyPart.RIGHT_KNEE):
        lm = landmarks[part]
        landmarks[part] = Landmark(lm.x, lm.y, lm.z, 0.0)
    return PoseFrame(landmarks=tuple(landmarks))


def test_impact_within_sequence(swing_frames, swing_timestamps):
    """Consensus frame and confidence stay in range."""
    result = ImpactConsensusDetector().detect(swing_frames, _path(swing_frames, swing_timestamps))

    assert 0 <= result.frame < len(swing_frames)
    assert 0.0 <= result.confidence <= 1.0
    assert 0.0 <= result.agreement <= 1.0
    assert 0.0 <= result.consistency <= 1.0
    assert [m.method for m in result.methods] == list(ImpactConsensusDetector.METHODS)


def test_club_position_finds_lowest_point(swing_frames, swing_timestamps):
    """The lowest club-head position falls in the downswing."""
    path = _path(swing_frames, swing_timestamps)
    result = ImpactConsensusDetector().detect(swing_frames, path)
    position = result.method('club_position')

    assert position.confidence > 0
    assert position.frame == int(path.frames()[np.argmax(path.positions()[:, 1])])
    assert position.frame > 75


def test_fewer_than_five_samples_is_neutral(swing_frames):
    """Below five path samples confidence is exactly 0 with a note."""
    frames = swing_frames[:4]
    result = ImpactConsensusDetector().detect(frames, _path(frames))

    assert result.frame == 0
    assert result.confidence == 0.0
    assert all(m.confidence == 0.0 for m in result.methods)
    assert result.discrepancies[0].startswith('InsufficientData')


def test_failed_method_does_not_abort_the_others(swing_frames, swing_timestamps):
    """Missing hips and knees only zero the weight-transfer method."""
    frames = [_without_legs(f) for f in swing_frames]
    result = ImpactConsensusDetector().detect(frames, _path(frames, swing_timestamps))

    assert result.method('weight_transfer').confidence == 0.0
    assert result.method('weight_transfer').note
    assert result.method('club_speed').confidence > 0
    assert result.confidence > 0
    assert any(d.startswith('weight_transfer') for d in result.discrepancies)


def test_corroborating_frame_disagreement_is_noted(swing_frames, swing_timestamps):
    """An external impact frame far from consensus produces a note."""
    detector = ImpactConsensusDetector()
    path = _path(swing_frames, swing_timestamps)
    baseline = detector.detect(swing_frames, path)
    far = detector.detect(swing_frames, path, corroborating_frame=(baseline.frame + 40) % 150)
    near = detector.detect(swing_frames, path, corroborating_frame=baseline.frame)

    assert any('External signal' in d for d in far.discrepancies)
    assert not any('External signal' in d for d in near.discrepancies)
    assert far.frame == baseline.frame


def test_early_impact_is_flagged():
    """A path peaking in the first frames triggers the early-impact note."""
    points = []
    for k in range(30):
        y = 0.9 - 0.02 * k
        points.append(ClubPathPoint(x=0.5, y=y, z=0.0, frame=k, timestamp=k * 33.3,
                                    velocity=0.6 if k < 3 else 0.6 / (k + 1), confidence=0.8))
    path = ClubPath(points=tuple(points), confidence=0.5)
    frames = [PoseFrame(landmarks=())] * 30

    result = ImpactConsensusDetector().detect(frames, path)

    assert result.frame < 9
    assert 'Impact detected unusually early in sequence' in result.discrepancies


def test_late_impact_is_flagged():
    """A path bottoming out in the last frames triggers the late-impact note."""
    points = tuple(ClubPathPoint(x=0.5, y=0.3 + 0.02 * k, z=0.0, frame=k, timestamp=k * 33.3,
                                 velocity=0.02 * k, confidence=0.8) for k in range(30))
    frames = [PoseFrame(landmarks=())] * 30

    result = ImpactConsensusDetector().detect(frames, ClubPath(points=points, confidence=0.5))

    assert result.frame > 27
    assert 'Impact detected unusually late in sequence' in result.discrepancies
    assert 'Impact detected unusually early in sequence' not in result.discrepancies


def test_no_evidence_is_low_confidence():
    """A perfectly still path produces no evidence and a LowConfidence note."""
    points = tuple(ClubPathPoint(x=0.5, y=0.8, z=0.0, frame=k, timestamp=k * 33.3,
                                 velocity=0.0, confidence=0.8) for k in range(10))
    frames = [PoseFrame(landmarks=())] * 10

    result = ImpactConsensusDetector().detect(frames, ClubPath(points=points))

    assert result.confidence == 0.0
    assert any(d.startswith('LowConfidence') for d in result.discrepancies)
    assert result.consistency == 0.0
