"""
STEM Tutor - Self-paced STEM lessons with XP, streaks and gated progression.
"""

__version__ = "0.1.0"
