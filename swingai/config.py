# config.py
"""
Configuration for the SwingAI analysis engine
Modify thresholds and defaults here

The module-level dictionaries hold the default values. They feed the frozen
dataclasses below, and one AnalysisConfig instance is passed explicitly into
the pipeline, so no component reads global state at runtime.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

from .constants import DEFAULT_FPS, REFERENCE_RESOLUTION, SKILL_LEVELS

# Phase Segmenter Parameters
PHASE_DETECTION_CONFIG = {
    'min_frames': 10,
    'min_phase_duration': 5,          # frames between consecutive boundaries
    'velocity_threshold': 0.3,        # normalized units / second (~0.01 per frame at 30 fps)
    'displacement_threshold': 0.05,   # normalized units from frame 0
    'smoothing_window': 3,
    'address_search_window': 30,
    'address_fallback_frame': 10,
    'top_search_fraction': 0.8,
    'top_refine_window': 5,
    'velocity_drop_ratio': 0.5,
    'downswing_search_window': 20,
    'downswing_fallback_offset': 2,
    'impact_search_fraction': 0.4,
    'follow_through_offset': 3
}

# Impact Consensus Parameters
IMPACT_DETECTION_CONFIG = {
    'min_samples': 5,
    'expected_max_speed': 8.0,           # normalized units / second
    'expected_shift': 0.1,               # combined hip + knee lateral shift
    'position_variance_scale': 10.0,
    'expected_max_acceleration': 250.0,  # normalized units / second^2
    'early_fraction': 0.3,
    'late_fraction': 0.9,
    'corroboration_window': 5
}

# Club-Path Parameters
CLUB_PATH_CONFIG = {
    'min_confident_points': 5,         # fewer points keep the path but score it 0
    'geometric_length_ratio': 2.3,
    'biomechanical_length_ratio': 1.5,
    'swing_plane_length_ratio': 2.0,
    'geometric_weight': 0.8,
    'biomechanical_weight': 0.7,
    'swing_plane_weight': 0.6,
    'expected_arc_height': 0.3,
    'max_position_jump': 0.2,
    'max_frame_gap': 5,
    'low_confidence_point': 0.5,
    'low_confidence_share': 0.3,
    'max_plausible_speed': 50.0,
    'min_plausible_speed': 0.05,
    'min_arc_height': 0.1
}

# Validator Parameters
VALIDATION_CONFIG = {
    'recommended_frames': 30,
    'tempo_tolerance': 0.05,
    'min_mean_visibility': 0.5,
    'max_missing_landmark_share': 0.2,
    'low_confidence': 0.3,
    'min_wrist_range': 0.15,
    'impact_phase_window': 10
}

# Analysis defaults
ANALYSIS_CONFIG = {
    'skill_level': 'intermediate',
    'fps': DEFAULT_FPS,
    'min_visibility': 0.5,
    'handedness': 'right',
    'window_capacity': 180,
    'reference_resolution': REFERENCE_RESOLUTION
}


@dataclass(frozen=True)
class PhaseDetectionConfig:
    """Named thresholds for the rule-based phase segmenter."""
    min_frames: int = PHASE_DETECTION_CONFIG['min_frames']
    min_phase_duration: int = PHASE_DETECTION_CONFIG['min_phase_duration']
    velocity_threshold: float = PHASE_DETECTION_CONFIG['velocity_threshold']
    displacement_threshold: float = PHASE_DETECTION_CONFIG['displacement_threshold']
    smoothing_window: int = PHASE_DETECTION_CONFIG['smoothing_window']
    address_search_window: int = PHASE_DETECTION_CONFIG['address_search_window']
    address_fallback_frame: int = PHASE_DETECTION_CONFIG['address_fallback_frame']
    top_search_fraction: float = PHASE_DETECTION_CONFIG['top_search_fraction']
    top_refine_window: int = PHASE_DETECTION_CONFIG['top_refine_window']
    velocity_drop_ratio: float = PHASE_DETECTION_CONFIG['velocity_drop_ratio']
    downswing_search_window: int = PHASE_DETECTION_CONFIG['downswing_search_window']
    downswing_fallback_offset: int = PHASE_DETECTION_CONFIG['downswing_fallback_offset']
    impact_search_fraction: float = PHASE_DETECTION_CONFIG['impact_search_fraction']
    follow_through_offset: int = PHASE_DETECTION_CONFIG['follow_through_offset']


@dataclass(frozen=True)
class ImpactDetectionConfig:
    min_samples: int = IMPACT_DETECTION_CONFIG['min_samples']
    expected_max_speed: float = IMPACT_DETECTION_CONFIG['expected_max_speed']
    expected_shift: float = IMPACT_DETECTION_CONFIG['expected_shift']
    position_variance_scale: float = IMPACT_DETECTION_CONFIG['position_variance_scale']
    expected_max_acceleration: float = IMPACT_DETECTION_CONFIG['expected_max_acceleration']
    early_fraction: float = IMPACT_DETECTION_CONFIG['early_fraction']
    late_fraction: float = IMPACT_DETECTION_CONFIG['late_fraction']
    corroboration_window: int = IMPACT_DETECTION_CONFIG['corroboration_window']


@dataclass(frozen=True)
class ClubPathConfig:
    min_confident_points: int = CLUB_PATH_CONFIG['min_confident_points']
    geometric_length_ratio: float = CLUB_PATH_CONFIG['geometric_length_ratio']
    biomechanical_length_ratio: float = CLUB_PATH_CONFIG['biomechanical_length_ratio']
    swing_plane_length_ratio: float = CLUB_PATH_CONFIG['swing_plane_length_ratio']
    geometric_weight: float = CLUB_PATH_CONFIG['geometric_weight']
    biomechanical_weight: float = CLUB_PATH_CONFIG['biomechanical_weight']
    swing_plane_weight: float = CLUB_PATH_CONFIG['swing_plane_weight']
    expected_arc_height: float = CLUB_PATH_CONFIG['expected_arc_height']
    max_position_jump: float = CLUB_PATH_CONFIG['max_position_jump']
    max_frame_gap: int = CLUB_PATH_CONFIG['max_frame_gap']
    low_confidence_point: float = CLUB_PATH_CONFIG['low_confidence_point']
    low_confidence_share: float = CLUB_PATH_CONFIG['low_confidence_share']
    max_plausible_speed: float = CLUB_PATH_CONFIG['max_plausible_speed']
    min_plausible_speed: float = CLUB_PATH_CONFIG['min_plausible_speed']
    min_arc_height: float = CLUB_PATH_CONFIG['min_arc_height']


@dataclass(frozen=True)
class ValidationConfig:
    recommended_frames: int = VALIDATION_CONFIG['recommended_frames']
    tempo_tolerance: float = VALIDATION_CONFIG['tempo_tolerance']
    min_mean_visibility: float = VALIDATION_CONFIG['min_mean_visibility']
    max_missing_landmark_share: float = VALIDATION_CONFIG['max_missing_landmark_share']
    low_confidence: float = VALIDATION_CONFIG['low_confidence']
    min_wrist_range: float = VALIDATION_CONFIG['min_wrist_range']
    impact_phase_window: int = VALIDATION_CONFIG['impact_phase_window']


_SECTIONS = {
    'phase': PhaseDetectionConfig,
    'impact': ImpactDetectionConfig,
    'club_path': ClubPathConfig,
    'validation': ValidationConfig,
}


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Immutable configuration passed into every analysis call.

    Args:
        skill_level: Benchmark tier ('beginner' ... 'professional')
        fps: Frame rate assumed when no timestamps are supplied
        min_visibility: Landmarks below this visibility are ignored
        handedness: 'right' or 'left'; picks lead/trail sides
        window_capacity: Frame capacity of the streaming window
    """
    skill_level: str = ANALYSIS_CONFIG['skill_level']
    fps: float = ANALYSIS_CONFIG['fps']
    min_visibility: float = ANALYSIS_CONFIG['min_visibility']
    handedness: str = ANALYSIS_CONFIG['handedness']
    window_capacity: int = ANALYSIS_CONFIG['window_capacity']
    reference_resolution: tuple = ANALYSIS_CONFIG['reference_resolution']
    phase: PhaseDetectionConfig = field(default_factory=PhaseDetectionConfig)
    impact: ImpactDetectionConfig = field(default_factory=ImpactDetectionConfig)
    club_path: ClubPathConfig = field(default_factory=ClubPathConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)

    def __post_init__(self):
        if self.skill_level not in SKILL_LEVELS:
            raise ValueError(f"Unknown skill level: {self.skill_level}. Use one of {SKILL_LEVELS}")
        if self.handedness not in ('right', 'left'):
            raise ValueError(f"Unknown handedness: {self.handedness}. Use 'right' or 'left'")
        if self.fps <= 0:
            raise ValueError("fps must be positive")

    @property
    def lead_side(self) -> str:
        """Side of the lead arm (left for a right-handed golfer)."""
        return 'left' if self.handedness == 'right' else 'right'

    @property
    def trail_side(self) -> str:
        return 'right' if self.handedness == 'right' else 'left'

    def with_overrides(self, **overrides) -> 'AnalysisConfig':
        """Return a copy with top-level fields replaced."""
        return replace(self, **overrides)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'AnalysisConfig':
        """
        Build a config from a (possibly nested) dictionary.

        Nested sections use the keys 'phase', 'impact', 'club_path' and
        'validation'. Unknown keys raise ValueError.
        """
        data = dict(data or {})
        kwargs = {}
        for name, section_cls in _SECTIONS.items():
            if name in data:
                kwargs[name] = _build_section(section_cls, data.pop(name))

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        if 'reference_resolution' in data:
            data['reference_resolution'] = tuple(data['reference_resolution'])
        kwargs.update(data)
        return cls(**kwargs)


def _build_section(section_cls, values):
    if isinstance(values, section_cls):
        return values
    known = {f.name for f in fields(section_cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown {section_cls.__name__} keys: {sorted(unknown)}")
    return section_cls(**values)


DEFAULT_CONFIG = AnalysisConfig()
