"""Feedback collection service with an HTML dashboard."""

__version__ = "1.0.0"
