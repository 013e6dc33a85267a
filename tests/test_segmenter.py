import numpy as np
import pytest

from swingai.config import PhaseDetectionConfig
from swingai.constants import PHASE_NAMES
from swingai.errors import FatalInputError
from swingai.phase import (SwingPhaseSegmenter, clamp_boundaries, create_predictor, default_boundaries,
                           phase_at_frame, phase_progress, smooth_phase_boundaries)
from swingai.pose import BodyPart, Trajectory, extract_trajectory, resolve_timestamps


def _segment(frames, segmenter=None):
    stamps = resolve_timestamps(frames)
    trajectory = extract_trajectory(frames, stamps, BodyPart.LEFT_WRIST)
    return (segmenter or SwingPhaseSegmenter()).segment(frames, trajectory, stamps)


def _by_name(phases):
    return {p.name: p for p in phases}


def test_synthetic_swing_top_and_impact(swing_frames):
    """Top lands near frame 75 and impact in 105-112."""
    phases = _by_name(_segment(swing_frames))

    assert abs(phases['top'].start_frame - 75) <= 5
    assert 105 <= phases['impact'].start_frame <= 112


def test_six_contiguous_phases_cover_sequence(swing_frames):
    """Six named phases, no gaps or overlaps, covering [0, N-1]."""
    phases = _segment(swing_frames)

    assert [p.name for p in phases] == list(PHASE_NAMES)
    assert phases[0].start_frame == 0
    assert phases[-1].end_frame == len(swing_frames) - 1
    for prev, phase in zip(phases, phases[1:]):
        assert phase.start_frame == prev.end_frame
        assert phase.start_frame >= prev.start_frame
    assert all(p.frame_count >= 5 for p in phases)


@pytest.mark.parametrize("n", [30, 45, 90, 150, 240])
def test_durations_sum_to_capture_duration(make_swing, n):
    """Phase durations add up to the capture duration for any length."""
    frames = make_swing(n)
    phases = _segment(frames)
    total = (n - 1) * 1000.0 / 30.0

    assert sum(p.duration for p in phases) == pytest.approx(total)
    assert [p.name for p in phases] == list(PHASE_NAMES)
    assert phases[-1].end_frame == n - 1


def test_detected_phases_carry_confidence(swing_frames):
    """Successful detection keeps the per-phase base confidence."""
    phases = _segment(swing_frames)

    assert all(0.0 < p.confidence <= 1.0 for p in phases)
    assert _by_name(phases)['address'].confidence == pytest.approx(0.9)


def test_phase_metrics_follow_the_swing(swing_frames):
    """Backswing turns the shoulders further than the hips."""
    backswing = _by_name(_segment(swing_frames))['backswing']

    assert backswing.metrics.shoulder_rotation > backswing.metrics.hip_rotation > 0
    assert backswing.metrics.velocity > 0
    assert backswing.metrics.lead_weight + backswing.metrics.trail_weight == pytest.approx(100.0)


def test_short_sequence_degrades_to_default_boundaries(make_swing):
    """Below the frame minimum every phase has confidence 0, nothing raises."""
    frames = make_swing(3)
    phases = _segment(frames)

    assert len(phases) == 6
    assert all(p.confidence == 0.0 for p in phases)
    assert phases[0].start_frame == 0
    assert phases[-1].end_frame == 2


def test_invisible_wrist_degrades(make_swing):
    """A trajectory with no visible samples falls back to default boundaries."""
    frames = make_swing(60, visibility=0.1)
    phases = _segment(frames)

    assert all(p.confidence == 0.0 for p in phases)
    assert [p.start_frame for p in phases] == clamp_boundaries(default_boundaries(60), 60, 5)[:-1]


def test_stricter_config_changes_detection(swing_frames):
    """Thresholds come from the config object."""
    loose = _by_name(_segment(swing_frames))
    strict = _by_name(_segment(swing_frames, SwingPhaseSegmenter(
        PhaseDetectionConfig(displacement_threshold=0.1))))

    assert strict['backswing'].start_frame > loose['backswing'].start_frame


def test_clamp_boundaries_enforces_order_and_spacing():
    """Out-of-order boundaries become ordered with minimum spacing."""
    bounds = clamp_boundaries([50, 20, 20, 90, 300], 100, 5)

    assert bounds[0] == 0 and bounds[-1] == 99
    assert all(b - a >= 5 for a, b in zip(bounds, bounds[1:]))


def test_phase_lookup_helpers(swing_frames):
    """phase_at_frame and phase_progress locate frames inside phases."""
    phases = _segment(swing_frames)
    top = _by_name(phases)['top']

    assert phase_at_frame(phases, 0).name == 'address'
    assert phase_at_frame(phases, top.start_frame).name == 'top'
    assert phase_at_frame(phases, len(swing_frames) - 1).name == 'follow_through'
    assert phase_at_frame(phases, 10_000) is None
    assert phase_progress(top, top.start_frame) == 0.0
    assert phase_progress(top, top.end_frame) == 1.0


def test_smooth_phase_boundaries_keeps_contiguity(swing_frames):
    """Smoothing keeps the phases ordered and covering the same span."""
    phases = smooth_phase_boundaries(_segment(swing_frames), window=3)

    assert phases[0].start_frame == 0
    assert phases[-1].end_frame == len(swing_frames) - 1
    for prev, phase in zip(phases, phases[1:]):
        assert phase.start_frame == prev.end_frame
        assert phase.start_frame >= prev.start_frame


def test_external_boundaries(swing_frames):
    """An external phase source is used as-is after clamping."""
    stamps = resolve_timestamps(swing_frames)
    trajectory = extract_trajectory(swing_frames, stamps, BodyPart.LEFT_WRIST)
    predictor = create_predictor('external', boundaries=[10, 70, 78, 106, 115], boundary_confidence=0.5)
    phases = predictor.predict(swing_frames, trajectory, stamps)

    assert [p.start_frame for p in phases] == [0, 10, 70, 78, 106, 115]
    assert _by_name(phases)['address'].confidence == pytest.approx(0.45)


def test_external_source_needs_five_boundaries():
    """An external source with the wrong number of boundaries is malformed input."""
    with pytest.raises(FatalInputError):
        create_predictor('external', boundaries=[10, 20])


def test_unknown_predictor_type():
    """Only rule-based and external sources exist."""
    with pytest.raises(ValueError):
        create_predictor('neural-network')


def test_default_boundaries_are_proportional():
    """Default boundaries scale with sequence length."""
    assert default_boundaries(101) == [10, 50, 55, 72, 77]
    assert np.all(np.diff(default_boundaries(1000)) > 0)


def _flat_trajectory(n):
    return Trajectory(landmark=int(BodyPart.LEFT_WRIST),
                      positions=np.tile([0.5, 0.7, 0.0], (n, 1)),
                      valid=np.ones(n, dtype=bool),
                      timestamps=np.arange(n) * 1000.0 / 30.0)


def test_fallback_boundaries_halve_adjacent_confidence(make_swing):
    """A motionless wrist falls back on address end and downswing start."""
    frames = make_swing(60)
    trajectory = _flat_trajectory(60)
    phases = _by_name(SwingPhaseSegmenter().segment(frames, trajectory, trajectory.timestamps))

    assert phases['address'].confidence == pytest.approx(0.45)
    assert phases['backswing'].confidence == pytest.approx(0.40)
    assert phases['top'].confidence == pytest.approx(0.35)
    assert phases['downswing'].confidence == pytest.approx(0.40)
    assert phases['impact'].confidence == pytest.approx(0.9)
    assert phases['follow_through'].confidence == pytest.approx(0.8)


def test_top_moves_to_following_speed_drop():
    """The highest point is pushed to a speed drop just after it, never before."""
    n = 50
    smoothed = np.zeros((n, 3))
    smoothed[:, 0] = 0.5
    smoothed[:, 1] = 0.2 + 0.01 * np.abs(np.arange(n) - 20)
    segmenter = SwingPhaseSegmenter()

    speeds = np.ones(n)
    assert segmenter._detect_top(smoothed, speeds, 5) == 20

    speeds[23] = 0.4
    assert segmenter._detect_top(smoothed, speeds, 5) == 23

    speeds = np.ones(n)
    speeds[17] = 0.4
    assert segmenter._detect_top(smoothed, speeds, 5) == 20


def test_acceleration_peak_is_centred_on_the_kink():
    """A single change of hand speed at frame 70 is picked as frame 70."""
    n = 100
    i = np.arange(n)
    smoothed = np.zeros((n, 3))
    smoothed[:, 0] = 0.5
    smoothed[:, 1] = np.where(i <= 70, 0.1 + 0.005 * i, 0.45 + 0.001 * (i - 70))

    impact = SwingPhaseSegmenter()._detect_impact(smoothed, i * 1000.0 / 30.0)

    assert impact == 70
