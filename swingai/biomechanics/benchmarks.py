"""
Golf Swing Benchmarks - skill-tier reference corridors

Each corridor holds a professional {min, ideal, max} band and a per-tier
tolerance that widens the band for less experienced players. Values come from
published tour biomechanics (spine/knee/turn ranges, weight transfer and
kinematic sequence timing) and are static: tables are never mutated.
"""

import json
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from ..constants import SKILL_LEVELS


@dataclass(frozen=True)
class BenchmarkCorridor:
    """Reference band for one raw metric."""
    min: float
    ideal: float
    max: float
    tolerance: Mapping[str, float] = field(default_factory=dict)
    importance: float = 0.5
    description: str = ''
    unit: str = '°'

    def __post_init__(self):
        if not self.min <= self.ideal <= self.max:
            raise ValueError(f"Corridor must satisfy min <= ideal <= max, got "
                             f"{self.min}/{self.ideal}/{self.max}")

    def for_level(self, level: str) -> Tuple[float, float, float]:
        """(low, ideal, high) widened by the tier tolerance."""
        tol = self.tolerance.get(level, 0.0)
        return self.min - tol, self.ideal, self.max + tol

    def to_dict(self) -> Dict:
        return {
            'min': self.min,
            'ideal': self.ideal,
            'max': self.max,
            'tolerance': dict(self.tolerance),
            'importance': self.importance,
            'description': self.description,
            'unit': self.unit,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> 'BenchmarkCorridor':
        return cls(min=float(data['min']), ideal=float(data['ideal']), max=float(data['max']),
                   tolerance=MappingProxyType(dict(data.get('tolerance', {}))),
                   importance=float(data.get('importance', 0.5)),
                   description=data.get('description', ''),
                   unit=data.get('unit', '°'))


def _tiers(beginner, intermediate, advanced, professional):
    return MappingProxyType({
        'beginner': beginner,
        'intermediate': intermediate,
        'advanced': advanced,
        'professional': professional,
    })


# Per-metric corridors, grouped by scoring category
DEFAULT_BENCHMARKS = MappingProxyType({
    # ========== TEMPO ==========
    'backswing_time': BenchmarkCorridor(
        0.7, 0.8, 0.9, _tiers(0.2, 0.15, 0.1, 0.05), 0.7,
        'Time from takeaway to the top of the backswing', 's'),
    'downswing_time': BenchmarkCorridor(
        0.23, 0.25, 0.27, _tiers(0.07, 0.05, 0.03, 0.01), 0.7,
        'Time from the top of the backswing to impact', 's'),
    'tempo_ratio': BenchmarkCorridor(
        2.8, 3.0, 3.2, _tiers(0.5, 0.3, 0.2, 0.1), 0.9,
        'Backswing duration divided by downswing duration', ':1'),

    # ========== ROTATION ==========
    'shoulder_turn': BenchmarkCorridor(
        80, 90, 100, _tiers(15, 10, 7, 5), 0.95,
        'Shoulder rotation at top of backswing'),
    'hip_turn': BenchmarkCorridor(
        35, 40, 45, _tiers(10, 8, 5, 3), 0.9,
        'Hip rotation at top of backswing'),
    'x_factor': BenchmarkCorridor(
        40, 50, 60, _tiers(10, 7, 5, 3), 0.9,
        'Shoulder-hip separation at top of backswing'),

    # ========== WEIGHT TRANSFER (% on lead foot) ==========
    'weight_address': BenchmarkCorridor(
        45, 50, 55, _tiers(8, 6, 4, 2), 0.8,
        'Weight distribution at address', '%'),
    'weight_top': BenchmarkCorridor(
        30, 35, 40, _tiers(10, 7, 5, 3), 0.85,
        'Weight transfer to trail foot at top', '%'),
    'weight_impact': BenchmarkCorridor(
        75, 80, 85, _tiers(12, 8, 5, 3), 0.95,
        'Weight transfer to lead foot at impact', '%'),

    # ========== SWING PLANE ==========
    'plane_angle': BenchmarkCorridor(
        55, 60, 65, _tiers(10, 7, 5, 3), 0.85,
        'Inclination of the backswing plane from horizontal'),
    'plane_deviation': BenchmarkCorridor(
        0, 0, 4, _tiers(4, 3, 2, 1), 0.8,
        'Mean frame-to-frame change of the swing-plane angle'),
    'impact_path_angle': BenchmarkCorridor(
        -2, 0, 2, _tiers(5, 3, 2, 1), 0.95,
        'Club-head travel direction at impact relative to horizontal'),

    # ========== BODY ALIGNMENT ==========
    'spine_angle': BenchmarkCorridor(
        35, 40, 45, _tiers(8, 6, 4, 2), 0.9,
        'Forward spine tilt at address, measured from vertical'),
    'head_movement': BenchmarkCorridor(
        0, 0, 0.15, _tiers(0.15, 0.1, 0.05, 0.02), 0.8,
        'Lateral head shift from address to impact, in shoulder widths', 'sw'),
    'knee_flex': BenchmarkCorridor(
        20, 25, 30, _tiers(7, 5, 3, 2), 0.8,
        'Knee flexion at address for athletic stance'),
})

METRIC_CATEGORIES = MappingProxyType({
    'tempo': ('backswing_time', 'downswing_time', 'tempo_ratio'),
    'rotation': ('shoulder_turn', 'hip_turn', 'x_factor'),
    'weight_transfer': ('weight_address', 'weight_top', 'weight_impact'),
    'swing_plane': ('plane_angle', 'plane_deviation', 'impact_path_angle'),
    'body_alignment': ('spine_angle', 'head_movement', 'knee_flex'),
})

# Downswing kinematic sequence: normalized time of each segment's peak speed
KINEMATIC_SEQUENCE = MappingProxyType({
    'order': ('hips', 'torso', 'arms', 'club'),
    'timing': MappingProxyType({
        'hips': BenchmarkCorridor(0.18, 0.2, 0.22, _tiers(0.1, 0.07, 0.05, 0.03), 0.95, unit=''),
        'torso': BenchmarkCorridor(0.38, 0.4, 0.42, _tiers(0.1, 0.07, 0.05, 0.03), 0.95, unit=''),
        'arms': BenchmarkCorridor(0.58, 0.6, 0.62, _tiers(0.1, 0.07, 0.05, 0.03), 0.95, unit=''),
        'club': BenchmarkCorridor(0.78, 0.8, 0.82, _tiers(0.1, 0.07, 0.05, 0.03), 0.95, unit=''),
    }),
    'description': 'Kinematic sequence timing in downswing',
})


def score_value(value: float, low: float, ideal: float, high: float) -> float:
    """
    Score a raw value against a corridor.

    100 at ideal, falling linearly to 50 at the corridor edge on that side,
    then twice as steeply outside the corridor, clipped to [0, 100].
    """
    if value == ideal:
        return 100.0

    if value < ideal:
        span, edge = ideal - low, low
        overshoot = low - value
    else:
        span, edge = high - ideal, high
        overshoot = value - high

    if span <= 0:
        # ideal sits on the corridor edge; fall off against the opposite side
        span = max(high - low, 1e-6)
        overshoot = abs(value - edge)
        return max(0.0, 50.0 - 100.0 * overshoot / span)

    if overshoot <= 0:
        return 100.0 - 50.0 * abs(value - ideal) / span
    return max(0.0, 50.0 - 100.0 * overshoot / span)


class GolfBenchmarks:
    """
    Benchmark lookup for one analysis.

    Supports the default tables and custom corridors loaded from JSON.
    """

    def __init__(self, benchmarks_path: Optional[str] = None):
        """
        Initialize with benchmark data.

        Args:
            benchmarks_path: Path to a JSON file of corridor overrides, or None for defaults
        """
        corridors = dict(DEFAULT_BENCHMARKS)
        if benchmarks_path and os.path.exists(benchmarks_path):
            with open(benchmarks_path, 'r') as f:
                custom = json.load(f)
            for metric, data in custom.items():
                corridors[metric] = BenchmarkCorridor.from_dict(data)
        self.benchmarks = MappingProxyType(corridors)

    def get_corridor(self, metric: str) -> Optional[BenchmarkCorridor]:
        return self.benchmarks.get(metric)

    def get_range(self, metric: str, level: str) -> Optional[Tuple[float, float, float]]:
        if level not in SKILL_LEVELS:
            raise ValueError(f"Unknown skill level: {level}")
        corridor = self.get_corridor(metric)
        return corridor.for_level(level) if corridor else None

    def is_in_range(self, metric: str, value: float, level: str) -> bool:
        band = self.get_range(metric, level)
        if band is None:
            return False
        return band[0] <= value <= band[2]

    def score(self, metric: str, value: float, level: str) -> float:
        band = self.get_range(metric, level)
        if band is None:
            raise KeyError(f"No benchmark for metric '{metric}'")
        return score_value(value, *band)

    def get_deviation(self, metric: str, value: float, level: str) -> Optional[Dict]:
        """
        Calculate deviation from ideal for a metric.

        Returns:
            Dictionary with deviation info or None if no benchmark
        """
        band = self.get_range(metric, level)
        if band is None:
            return None
        low, ideal, high = band
        deviation = value - ideal

        return {
            'actual': value,
            'ideal': ideal,
            'min': low,
            'max': high,
            'deviation': deviation,
            'in_range': low <= value <= high,
            'score': score_value(value, low, ideal, high),
            'severity': self._calculate_severity(value, low, ideal, high)
        }

    @staticmethod
    def _calculate_severity(value: float, low: float, ideal: float, high: float) -> str:
        """
        Calculate severity of deviation.

        Returns:
            'good', 'minor', 'moderate', or 'major'
        """
        range_size = high - low

        if low <= value <= high:
            if abs(value - ideal) < range_size * 0.2:
                return 'good'
            return 'minor'

        overshoot = low - value if value < low else value - high
        if overshoot < range_size * 0.5:
            return 'moderate'
        return 'major'

    def save_benchmarks(self, path: str):
        """Save current corridors to a JSON file."""
        with open(path, 'w') as f:
            json.dump({name: c.to_dict() for name, c in self.benchmarks.items()}, f, indent=2)
