"""
Biomechanics Module - golf swing angles, benchmarks and scoring
"""

from .angles import GolfBiomechanics
from .benchmarks import (BenchmarkCorridor, DEFAULT_BENCHMARKS, GolfBenchmarks, KINEMATIC_SEQUENCE,
                         METRIC_CATEGORIES, score_value)
from .scorer import SwingScorer, letter_grade

__all__ = ['GolfBiomechanics', 'BenchmarkCorridor', 'DEFAULT_BENCHMARKS', 'GolfBenchmarks',
           'KINEMATIC_SEQUENCE', 'METRIC_CATEGORIES', 'score_value', 'SwingScorer', 'letter_grade']
