"""Dental clinic core: scheduling, dental chart geometry, billing and lab workflow."""

__version__ = "1.0.0"
