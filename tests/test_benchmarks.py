import json

import pytest

from swingai.biomechanics import (DEFAULT_BENCHMARKS, METRIC_CATEGORIES, BenchmarkCorridor,
                                  GolfBenchmarks, score_value)
from swingai.constants import SKILL_LEVELS


def test_ideal_scores_100():
    """A value exactly at ideal scores 100 for every metric and tier."""
    benchmarks = GolfBenchmarks()
    for metric, corridor in DEFAULT_BENCHMARKS.items():
        for level in SKILL_LEVELS:
            assert benchmarks.score(metric, corridor.ideal, level) == 100.0


@pytest.mark.parametrize("metric", ['tempo_ratio', 'shoulder_turn', 'weight_impact', 'spine_angle'])
def test_score_strictly_decreases_away_from_ideal(metric):
    """Moving away from ideal inside the corridor strictly lowers the score."""
    benchmarks = GolfBenchmarks()
    low, ideal, high = benchmarks.get_range(metric, 'intermediate')

    above = [ideal + (high - ideal) * f for f in (0.0, 0.25, 0.5, 0.75, 1.0)]
    below = [ideal - (ideal - low) * f for f in (0.0, 0.25, 0.5, 0.75, 1.0)]
    for values in (above, below):
        scores = [benchmarks.score(metric, v, 'intermediate') for v in values]
        assert all(a > b for a, b in zip(scores, scores[1:]))


def test_corridor_edge_scores_50_and_falls_faster_outside():
    """Edge of the corridor is 50; outside the falloff is twice as steep."""
    assert score_value(80, 80, 90, 100) == pytest.approx(50.0)
    assert score_value(85, 80, 90, 100) == pytest.approx(75.0)
    assert score_value(75, 80, 90, 100) == pytest.approx(0.0)
    assert score_value(77.5, 80, 90, 100) == pytest.approx(25.0)
    assert score_value(-500, 80, 90, 100) == 0.0


def test_ideal_on_corridor_edge():
    """A corridor whose ideal equals its min still scores monotonically."""
    assert score_value(0.0, 0.0, 0.0, 0.2) == 100.0
    assert score_value(0.05, 0.0, 0.0, 0.2) > score_value(0.1, 0.0, 0.0, 0.2)
    assert score_value(-0.05, 0.0, 0.0, 0.2) < 100.0


def test_tiers_widen_the_corridor():
    """Beginner corridors are wider than professional ones."""
    benchmarks = GolfBenchmarks()
    beginner = benchmarks.get_range('shoulder_turn', 'beginner')
    professional = benchmarks.get_range('shoulder_turn', 'professional')

    assert beginner[0] < professional[0]
    assert beginner[2] > professional[2]
    assert beginner[1] == professional[1]
    assert benchmarks.score('shoulder_turn', 72, 'beginner') > benchmarks.score('shoulder_turn', 72, 'professional')


def test_unknown_level_raises():
    """Skill tier must be one of the four known tiers."""
    with pytest.raises(ValueError):
        GolfBenchmarks().get_range('tempo_ratio', 'expert')


def test_invalid_corridor_rejected():
    """min <= ideal <= max is enforced."""
    with pytest.raises(ValueError):
        BenchmarkCorridor(10, 5, 20)


def test_every_category_metric_has_a_corridor():
    """Each scored metric has a benchmark."""
    for metrics in METRIC_CATEGORIES.values():
        for metric in metrics:
            assert metric in DEFAULT_BENCHMARKS


def test_deviation_severity():
    """Severity grades the distance from the corridor."""
    benchmarks = GolfBenchmarks()

    assert benchmarks.get_deviation('shoulder_turn', 90, 'professional')['severity'] == 'good'
    assert benchmarks.get_deviation('shoulder_turn', 102, 'professional')['severity'] == 'minor'
    assert benchmarks.get_deviation('shoulder_turn', 110, 'professional')['severity'] == 'moderate'
    assert benchmarks.get_deviation('shoulder_turn', 150, 'professional')['severity'] == 'major'
    assert benchmarks.get_deviation('not_a_metric', 1.0, 'professional') is None


def test_custom_benchmarks_round_trip(tmp_path):
    """Saved corridors load back as overrides."""
    path = tmp_path / "benchmarks.json"
    GolfBenchmarks().save_benchmarks(str(path))

    data = json.loads(path.read_text())
    data['tempo_ratio']['ideal'] = 3.1
    path.write_text(json.dumps(data))

    custom = GolfBenchmarks(str(path))
    assert custom.get_corridor('tempo_ratio').ideal == 3.1
    assert custom.score('tempo_ratio', 3.1, 'advanced') == 100.0
    assert custom.get_corridor('shoulder_turn').ideal == DEFAULT_BENCHMARKS['shoulder_turn'].ideal
    assert custom.get_range('tempo_ratio', 'beginner')[0] == pytest.approx(2.3)
