"""
SwingAI - Unified Analysis Pipeline
===================================
End-to-end swing analysis over an already-collected pose sequence.

Input: Pose frames (33 landmarks each), optional timestamps
Output: Phases, impact result, club path, scored metrics, validation report

Pipeline Steps:
1. Estimate club-head path (arm geometry)
2. Detect impact frame (four-method consensus over the path)
3. Segment six phases (lead-wrist trajectory)
4. Score metrics against skill-tier benchmarks
5. Validate everything

Usage:
    swingai data/extracted_poses/golf_swing_001_poses.csv
    swingai my_swing_poses.csv --club iron --level advanced --json result.json
"""

import argparse
import json
import logging
import sys
from typing import Mapping, Optional, Sequence

from .biomechanics import GolfBenchmarks, GolfBiomechanics, SwingScorer
from .club import ClubPathEstimator
from .config import AnalysisConfig
from .constants import CLUB_TYPES, SKILL_LEVELS
from .impact import ImpactConsensusDetector
from .models import SwingAnalysisResult
from .phase import PhasePredictor, SwingPhaseSegmenter, create_predictor
from .pose import (BodyPart, PoseFrame, RollingPoseWindow, check_frames, extract_trajectory,
                   load_pose_csv, resolve_timestamps)
from .validation import SwingValidator

logger = logging.getLogger(__name__)


class SwingAnalysisPipeline:
    """
    Unified pipeline for golf swing analysis.

    Holds only immutable configuration, so one instance can analyze any
    number of swings; nothing carries over between calls.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None,
                 benchmarks: Optional[GolfBenchmarks] = None,
                 phase_source: Optional[PhasePredictor] = None):
        """
        Initialize pipeline.

        Args:
            config: AnalysisConfig or None for defaults
            benchmarks: GolfBenchmarks or None for the default tables
            phase_source: Phase predictor or None for the rule-based segmenter
        """
        self.config = config or AnalysisConfig()
        self.benchmarks = benchmarks or GolfBenchmarks()
        cfg = self.config

        self.biomechanics = GolfBiomechanics(cfg.min_visibility, cfg.handedness)
        self.club_path_estimator = ClubPathEstimator(cfg.club_path, cfg.min_visibility,
                                                     cfg.handedness, cfg.reference_resolution)
        self.impact_detector = ImpactConsensusDetector(cfg.impact, self.biomechanics)
        self.phase_source = phase_source or create_predictor(
            'rule-based', segmenter=SwingPhaseSegmenter(cfg.phase, self.biomechanics))
        self.validator = SwingValidator(cfg.validation, cfg.phase.min_frames,
                                        cfg.min_visibility, cfg.lead_side)

    def analyze(self, frames: Sequence[PoseFrame], timestamps=None, club: str = 'driver',
                skill_level: Optional[str] = None, video_meta: Optional[Mapping] = None,
                corroborating_impact_frame: Optional[int] = None) -> SwingAnalysisResult:
        """
        Analyze one swing.

        Args:
            frames: Ordered pose frames
            timestamps: Optional per-frame timestamps in ms
            club: Club tag for feedback phrasing
            skill_level: Benchmark tier (defaults to the config's)
            video_meta: Optional {'width', 'height'} for path recalibration
            corroborating_impact_frame: Optional impact frame from an external signal

        Returns:
            SwingAnalysisResult bundle

        Raises:
            FatalInputError: empty or malformed input
        """
        frames = check_frames(frames)
        cfg = self.config
        level = skill_level or cfg.skill_level
        stamps = resolve_timestamps(frames, timestamps, cfg.fps)
        logger.info("Analyzing %d frames (%.2fs, %s, %s)", len(frames),
                    (stamps[-1] - stamps[0]) / 1000.0, club, level)

        # Step 1-2: club path, then impact from the path
        club_path = self.club_path_estimator.estimate(frames, stamps, video_meta)
        impact = self.impact_detector.detect(frames, club_path, corroborating_impact_frame)

        # Step 3: phases from the lead-wrist trajectory
        lead_wrist = BodyPart.for_side(cfg.lead_side, 'wrist')
        trajectory = extract_trajectory(frames, stamps, lead_wrist, cfg.min_visibility)
        phases = self.phase_source.predict(frames, trajectory, stamps)

        # Step 4-5: scoring and validation
        scorer = SwingScorer(self.benchmarks, level, club, self.biomechanics)
        metrics = scorer.score(phases, frames, club_path)
        validation = self.validator.validate(frames, metrics, phases, impact, club_path)

        return SwingAnalysisResult(
            phases=tuple(phases),
            impact=impact,
            club_path=club_path,
            metrics=metrics,
            validation=validation
        )


def analyze_swing(frames: Sequence[PoseFrame], timestamps=None, club: str = 'driver',
                  skill_level: Optional[str] = None, video_meta: Optional[Mapping] = None,
                  corroborating_impact_frame: Optional[int] = None,
                  config: Optional[AnalysisConfig] = None) -> SwingAnalysisResult:
    """Analyze one swing with a fresh pipeline (see SwingAnalysisPipeline.analyze)."""
    pipeline = SwingAnalysisPipeline(config)
    return pipeline.analyze(frames, timestamps, club, skill_level, video_meta,
                            corroborating_impact_frame)


class StreamingSwingAnalyzer:
    """
    Frame-incremental analysis over a bounded rolling window.

    Each push appends one frame and re-runs the full pipeline over the
    window; the window buffer is the only state kept between pushes.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None, club: str = 'driver',
                 skill_level: Optional[str] = None):
        self.pipeline = SwingAnalysisPipeline(config)
        self.window = RollingPoseWindow(self.pipeline.config.window_capacity)
        self.club = club
        self.skill_level = skill_level

    def push(self, frame: PoseFrame, timestamp_ms: Optional[float] = None) -> SwingAnalysisResult:
        """Append a frame and analyze the current window."""
        self.window.append(frame, timestamp_ms)
        return self.pipeline.analyze(self.window.frames(), self.window.timestamps(),
                                     self.club, self.skill_level)

    def reset(self):
        self.window.clear()


# ============================================
# COMMAND LINE
# ============================================

def print_summary(result: SwingAnalysisResult, scorer: SwingScorer):
    """Print a human-readable summary of one analysis."""
    print(f"\n{'='*70}")
    print("PHASES")
    print(f"{'='*70}")
    for phase in result.phases:
        print(f"  • {phase.name:<16} [{phase.start_frame:>4d}:{phase.end_frame:>4d}] "
              f"{phase.duration_s:5.2f}s  conf {phase.confidence:.2f}")

    impact = result.impact
    print(f"\nImpact: frame {impact.frame} (confidence {impact.confidence:.2f}, "
          f"agreement {impact.agreement:.2f})")
    for estimate in impact.methods:
        print(f"  - {estimate.method:<16} frame {estimate.frame:>4d}  conf {estimate.confidence:.2f}")

    path = result.club_path
    print(f"\nClub path: {len(path)} points, confidence {path.confidence:.2f}, "
          f"smoothness {path.smoothness:.2f}")

    print()
    print(scorer.generate_report(result.metrics))

    report = result.validation
    print(f"Reliability: {report.reliability:.2f} ({report.reliability_grade})")
    for error in report.errors:
        print(f"  ✗ {error}")
    for warning in report.warnings:
        print(f"  ⚠️ {warning}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Analyze a golf swing from a per-frame pose CSV',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  swingai data/extracted_poses/golf_swing_001_poses.csv
  swingai swing.csv --club iron --level advanced
  swingai swing.csv --json result.json --metrics-csv metrics.csv
        """
    )
    parser.add_argument('csv_path', help='Pose CSV (frame, <landmark>_x/_y/_z/_visibility columns)')
    parser.add_argument('--club', default='driver', choices=CLUB_TYPES, help='Club used (default: driver)')
    parser.add_argument('--level', default=None, choices=SKILL_LEVELS,
                        help='Skill tier for benchmarks (default: intermediate)')
    parser.add_argument('--fps', type=float, default=None, help='Capture frame rate when the CSV has no timestamps')
    parser.add_argument('--config', default=None, help='JSON file with AnalysisConfig overrides')
    parser.add_argument('--benchmarks', default=None, help='JSON file with benchmark corridor overrides')
    parser.add_argument('--width', type=int, default=None, help='Capture width in pixels (enables recalibration)')
    parser.add_argument('--height', type=int, default=None, help='Capture height in pixels')
    parser.add_argument('--json', dest='json_path', default=None, help='Write the full result bundle as JSON')
    parser.add_argument('--metrics-csv', default=None, help='Write the scored metrics table as CSV')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    overrides = {}
    if args.config:
        with open(args.config, 'r') as f:
            overrides = json.load(f)
    if args.fps:
        overrides['fps'] = args.fps
    config = AnalysisConfig.from_dict(overrides)

    frames = load_pose_csv(args.csv_path, config.min_visibility)
    video_meta = {'width': args.width, 'height': args.height} if args.width and args.height else None

    pipeline = SwingAnalysisPipeline(config, GolfBenchmarks(args.benchmarks))
    result = pipeline.analyze(frames, club=args.club, skill_level=args.level, video_meta=video_meta)
    scorer = SwingScorer(pipeline.benchmarks, result.metrics.skill_level, args.club)

    print_summary(result, scorer)

    if args.json_path:
        with open(args.json_path, 'w') as f:
            json.dump(result.to_dict(), f, indent=2, default=float)
        print(f"\n✓ Result saved: {args.json_path}")

    if args.metrics_csv:
        scorer.to_dataframe(result.metrics).to_csv(args.metrics_csv, index=False)
        print(f"✓ Metrics CSV saved: {args.metrics_csv}")

    return 0 if result.validation.is_usable else 1


if __name__ == '__main__':
    sys.exit(main())
