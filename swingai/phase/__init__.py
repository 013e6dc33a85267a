"""
Phase Detection Module
======================
Six-phase swing segmentation and interchangeable phase sources.
"""

from .rule_based import (SwingPhaseSegmenter, clamp_boundaries, default_boundaries,
                         phase_at_frame, phase_progress, smooth_phase_boundaries)
from .adapter import PhasePredictor, create_predictor

__all__ = ['SwingPhaseSegmenter', 'clamp_boundaries', 'default_boundaries',
           'phase_at_frame', 'phase_progress', 'smooth_phase_boundaries',
           'PhasePredictor', 'create_predictor']
