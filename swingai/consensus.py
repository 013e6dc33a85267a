"""
Confidence-weighted consensus.

Merges several independent estimates of the same quantity (a frame index, a
3-D position) into one value plus an agreement score. Used by both the impact
detector and the club-path estimator.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

Estimate = Tuple[Union[float, Sequence[float], np.ndarray], float]


@dataclass(frozen=True)
class ConsensusResult:
    value: np.ndarray
    agreement: float
    mean_confidence: float
    total_weight: float

    @property
    def confidence(self) -> float:
        """Mean individual confidence scaled by agreement."""
        return self.mean_confidence * self.agreement

    @property
    def scalar(self) -> float:
        return float(np.ravel(self.value)[0])


def weighted_consensus(estimates: Sequence[Estimate]) -> ConsensusResult:
    """
    Merge (value, confidence) pairs.

    value = sum(v * c) / sum(c), falling back to the first estimate's value
    when every confidence is zero. Deviations are Euclidean distances to the
    merged value, measured over every estimate, zero-confidence ones included:

        agreement = max(0, 1 - mean_dev / (max_dev + 1))

    Args:
        estimates: Non-empty sequence of (value, confidence); values may be
            scalars or equal-length vectors

    Returns:
        ConsensusResult with the merged value and agreement score
    """
    if not estimates:
        raise ValueError("weighted_consensus needs at least one estimate")

    values = np.array([np.atleast_1d(np.asarray(v, dtype=float)) for v, _ in estimates])
    weights = np.clip(np.array([float(c) for _, c in estimates]), 0.0, None)
    total = float(weights.sum())
    mean_confidence = float(weights.mean())

    if total <= 0:
        return ConsensusResult(value=values[0], agreement=0.0,
                               mean_confidence=0.0, total_weight=0.0)

    merged = (values * weights[:, None]).sum(axis=0) / total

    deviations = np.linalg.norm(values - merged, axis=1)
    max_dev = float(deviations.max())
    agreement = max(0.0, 1.0 - float(deviations.mean()) / (max_dev + 1.0))

    return ConsensusResult(value=merged, agreement=agreement,
                           mean_confidence=mean_confidence, total_weight=total)
