"""Pull-request review reports from diff statistics, heuristics and narrative reviews."""

__version__ = "0.1.0"
