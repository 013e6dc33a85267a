"""
Unified Interface for Phase Sources
===================================
Two interchangeable ways to obtain the six swing phases:

1. rule-based: SwingPhaseSegmenter over the lead-wrist trajectory (default)
2. external: boundary frames supplied by a collaborator (e.g. a trained
   classifier running elsewhere); no model is loaded here

Both go through the same clamping, timestamp rescaling and per-phase metric
code, so downstream components cannot tell them apart.

Usage:
    predictor = create_predictor('rule-based')
    phases = predictor.predict(frames, trajectory, timestamps)

    predictor = create_predictor('external', boundaries=[12, 70, 74, 101, 104])
    phases = predictor.predict(frames, trajectory, timestamps)
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from ..config import PhaseDetectionConfig
from ..constants import PHASE_CONFIDENCE, PHASE_NAMES
from ..errors import FatalInputError
from ..models import Phase
from ..pose.frames import PoseFrame
from ..pose.trajectory import Trajectory
from .rule_based import SwingPhaseSegmenter, clamp_boundaries

logger = logging.getLogger(__name__)

MODEL_TYPES = ('rule-based', 'external')


class PhasePredictor:
    """
    Wrapper giving every phase source the same predict() contract.
    """

    PHASE_NAMES = PHASE_NAMES

    def __init__(self, model_type: str = 'rule-based', boundaries: Optional[Sequence[int]] = None,
                 boundary_confidence: float = 1.0, config: Optional[PhaseDetectionConfig] = None,
                 segmenter: Optional[SwingPhaseSegmenter] = None):
        """
        Initialize phase predictor.

        Args:
            model_type: 'rule-based' or 'external'
            boundaries: Five interior boundary frames (required for 'external'):
                address end, top, downswing start, impact, follow-through start
            boundary_confidence: Scale applied to the per-phase confidences of
                an external source
            config: Thresholds for the rule-based segmenter
        """
        if model_type not in MODEL_TYPES:
            raise ValueError(f"Unknown model type: {model_type}. Use 'rule-based' or 'external'")

        self.model_type = model_type
        self.segmenter = segmenter or SwingPhaseSegmenter(config)
        self.boundary_confidence = float(np.clip(boundary_confidence, 0.0, 1.0))
        self.boundaries = None

        if model_type == 'external':
            if boundaries is None or len(boundaries) != 5:
                raise FatalInputError("External phase source needs exactly 5 boundary frames")
            self.boundaries = [int(b) for b in boundaries]
            logger.info("Using external phase boundaries %s", self.boundaries)

    def predict(self, frames: Sequence[PoseFrame], trajectory: Trajectory,
                timestamps: np.ndarray) -> List[Phase]:
        """Six contiguous phases for the given frames."""
        if self.model_type == 'rule-based':
            return self.segmenter.segment(frames, trajectory, timestamps)

        n = len(frames)
        bounds = clamp_boundaries(self.boundaries, n, self.segmenter.config.min_phase_duration)
        if bounds[1:-1] != [min(max(b, 0), max(n - 1, 0)) for b in self.boundaries]:
            logger.warning("External boundaries %s adjusted to %s", self.boundaries, bounds[1:-1])
        confidences = [PHASE_CONFIDENCE[name] * self.boundary_confidence for name in self.PHASE_NAMES]
        return self.segmenter.build_phases(frames, trajectory, np.asarray(timestamps, dtype=float),
                                           bounds, confidences)


def create_predictor(model_type: str = 'rule-based', **kwargs) -> PhasePredictor:
    """
    Factory function to create a phase predictor.

    Args:
        model_type: 'rule-based' or 'external'
        **kwargs: Passed to PhasePredictor

    Returns:
        PhasePredictor instance
    """
    return PhasePredictor(model_type=model_type, **kwargs)
