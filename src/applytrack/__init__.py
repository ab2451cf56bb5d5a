"""applytrack - job application counts, rollups and streaks."""

__version__ = "0.3.0"
