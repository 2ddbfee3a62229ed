"""learnhub - course progression and achievement engine."""

__version__ = "0.1.0"
