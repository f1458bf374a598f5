"""
Campus Course & Records Manager

Enrollment and academic record engine: enrollment rules, grading,
GPA aggregation and transcript generation.
"""

__version__ = "1.0.0"
