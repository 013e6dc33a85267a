"""
Shared Constants for SwingAI Swing Analysis
===========================================
Centralized definitions used across the project.
"""

# 6 Golf Swing Phases (fixed order)
PHASE_NAMES = [
    "address",
    "backswing",
    "top",
    "downswing",
    "impact",
    "follow_through"
]

# Heuristic confidence per phase type (no ground truth available)
PHASE_CONFIDENCE = {
    "address": 0.9,
    "backswing": 0.8,
    "top": 0.7,
    "downswing": 0.8,
    "impact": 0.9,
    "follow_through": 0.8
}

# MediaPipe Pose Landmark names (index order)
LANDMARK_NAMES = [
    'nose', 'left_eye_inner', 'left_eye', 'left_eye_outer',
    'right_eye_inner', 'right_eye', 'right_eye_outer',
    'left_ear', 'right_ear', 'mouth_left', 'mouth_right',
    'left_shoulder', 'right_shoulder', 'left_elbow', 'right_elbow',
    'left_wrist', 'right_wrist', 'left_pinky', 'right_pinky',
    'left_index', 'right_index', 'left_thumb', 'right_thumb',
    'left_hip', 'right_hip', 'left_knee', 'right_knee',
    'left_ankle', 'right_ankle', 'left_heel', 'right_heel',
    'left_foot_index', 'right_foot_index'
]

NUM_LANDMARKS = 33

SKILL_LEVELS = ["beginner", "intermediate", "advanced", "professional"]

CLUB_TYPES = ["driver", "wood", "hybrid", "iron", "wedge", "putter"]

LETTER_GRADES = [(90, "A"), (80, "B"), (70, "C"), (60, "D")]

# Canonical capture resolution used for club-path recalibration
REFERENCE_RESOLUTION = (1920, 1080)

DEFAULT_FPS = 30.0
