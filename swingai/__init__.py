"""
SwingAI - Golf Swing Biomechanics Analysis Engine
=================================================

Modules:
    pose: Pose frame model, CSV adapters, trajectories, streaming window
    phase: Six-phase swing segmentation (rule-based or external boundaries)
    club: Club-head path estimation from arm landmarks
    impact: Multi-method impact-frame consensus
    biomechanics: Angles, benchmark corridors and metric scoring
    validation: Plausibility and consistency checks
"""

from . import pose
from . import phase
from . import club
from . import impact
from . import biomechanics
from . import validation
from .config import AnalysisConfig
from .errors import FatalInputError, InsufficientDataError, InvalidLandmarksError, SwingAnalysisError
from .pipeline import SwingAnalysisPipeline, StreamingSwingAnalyzer, analyze_swing

__version__ = '0.1.0'

__all__ = ['pose', 'phase', 'club', 'impact', 'biomechanics', 'validation',
           'AnalysisConfig', 'FatalInputError', 'InsufficientDataError', 'InvalidLandmarksError',
           'SwingAnalysisError', 'SwingAnalysisPipeline', 'StreamingSwingAnalyzer', 'analyze_swing']
