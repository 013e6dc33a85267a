import pytest

from swingai.biomechanics import GolfBiomechanics, SwingScorer, letter_grade
from swingai.club import ClubPathEstimator
from swingai.models import ClubPath
from swingai.phase import SwingPhaseSegmenter
from swingai.pose import BodyPart, extract_trajectory, resolve_timestamps


@pytest.fixture
def scored_swing(swing_frames):
    stamps = resolve_timestamps(swing_frames)
    trajectory = extract_trajectory(swing_frames, stamps, BodyPart.LEFT_WRIST)
    phases = SwingPhaseSegmenter().segment(swing_frames, trajectory, stamps)
    path = ClubPathEstimator().estimate(swing_frames, stamps)
    return phases, path


@pytest.mark.parametrize("score,grade", [
    (100, 'A'), (90, 'A'), (89.9, 'B'), (80, 'B'), (70, 'C'), (60, 'D'), (59.9, 'F'), (0, 'F'),
])
def test_letter_grade_thresholds(score, grade):
    """Fixed grade thresholds."""
    assert letter_grade(score) == grade


def test_scores_are_bounded(swing_frames, scored_swing):
    """Every score lies in [0, 100] and the overall is the category mean."""
    phases, path = scored_swing
    metrics = SwingScorer().score(phases, swing_frames, path)

    categories = metrics.categories()
    assert list(categories) == ['tempo', 'rotation', 'weight_transfer', 'swing_plane', 'body_alignment']
    for record in categories.values():
        assert 0.0 <= record.score <= 100.0
        assert all(0.0 <= s <= 100.0 for s in record.scores.values())
    mean = sum(r.score for r in categories.values()) / 5
    assert metrics.overall_score == pytest.approx(mean)
    assert metrics.letter_grade == letter_grade(metrics.overall_score)


def test_raw_metrics_from_synthetic_swing(swing_frames, scored_swing):
    """Raw quantities reflect the synthetic swing geometry."""
    phases, path = scored_swing
    metrics = SwingScorer().score(phases, swing_frames, path)

    backswing = next(p for p in phases if p.name == 'backswing')
    downswing = next(p for p in phases if p.name == 'downswing')
    assert metrics.tempo.tempo_ratio == pytest.approx(backswing.duration / downswing.duration)
    assert metrics.rotation.shoulder_turn > metrics.rotation.hip_turn > 0
    assert metrics.rotation.x_factor == pytest.approx(metrics.rotation.shoulder_turn - metrics.rotation.hip_turn)
    assert metrics.weight_transfer.address == pytest.approx(50.0, abs=1.0)
    assert metrics.weight_transfer.top < metrics.weight_transfer.address < metrics.weight_transfer.impact
    assert metrics.body_alignment.head_movement == pytest.approx(0.0)
    assert metrics.body_alignment.scores['head_movement'] == 100.0
    assert 30.0 < metrics.body_alignment.spine_angle < 50.0
    assert metrics.body_alignment.knee_flex > 0


def test_skill_level_changes_scores(swing_frames, scored_swing):
    """Beginner corridors are more forgiving than professional ones."""
    phases, path = scored_swing
    beginner = SwingScorer(skill_level='beginner').score(phases, swing_frames, path)
    professional = SwingScorer(skill_level='professional').score(phases, swing_frames, path)

    assert beginner.overall_score >= professional.overall_score
    assert beginner.skill_level == 'beginner'


def test_unmeasured_metrics_score_zero(swing_frames, scored_swing):
    """Without a club path the swing-plane metrics are unmeasured."""
    phases, _ = scored_swing
    metrics = SwingScorer().score(phases, swing_frames, ClubPath())

    assert metrics.swing_plane.plane_angle == 0.0
    assert metrics.swing_plane.score == 0.0
    assert {'plane_angle', 'plane_deviation', 'impact_path_angle'} <= set(metrics.unmeasured)
    assert 'tempo_ratio' not in metrics.unmeasured
    assert any('could not be measured' in item for item in metrics.feedback)


def test_feedback_and_club_phrasing(swing_frames, scored_swing):
    """The club tag only changes the phrasing."""
    phases, path = scored_swing
    driver = SwingScorer(club='driver').score(phases, swing_frames, path)
    iron = SwingScorer(club='iron').score(phases, swing_frames, path)

    assert driver.feedback[0].startswith('Overall grade')
    assert 'with the driver' in driver.feedback[0]
    assert 'with your irons' in iron.feedback[0]
    assert driver.overall_score == iron.overall_score
    assert iron.key_improvements[-1].startswith('For irons')
    assert len(driver.key_improvements) <= 4


def test_unknown_skill_level():
    """Scorer only accepts the four tiers."""
    with pytest.raises(ValueError):
        SwingScorer(skill_level='tour')


def test_dataframe_and_report(swing_frames, scored_swing):
    """Export has one row per metric and the report names the grade."""
    phases, path = scored_swing
    scorer = SwingScorer()
    metrics = scorer.score(phases, swing_frames, path)

    df = scorer.to_dataframe(metrics)
    assert len(df) == 15
    assert list(df.columns) == ['category', 'metric', 'value', 'ideal', 'min', 'max', 'score', 'severity']
    assert set(df['severity']) <= {'good', 'minor', 'moderate', 'major'}

    report = scorer.generate_report(metrics)
    assert 'GOLF SWING ANALYSIS REPORT' in report
    assert f"Grade: {metrics.letter_grade}" in report


def test_left_handed_golfer_mirrors_sides(swing_frames, scored_swing):
    """Handedness flips which ankle counts as the lead foot."""
    phases, path = scored_swing
    right = SwingScorer().score(phases, swing_frames, path)
    left = SwingScorer(biomechanics=GolfBiomechanics(handedness='left')).score(phases, swing_frames, path)

    assert left.weight_transfer.impact == pytest.approx(100.0 - right.weight_transfer.impact)
