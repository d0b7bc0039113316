"""
Interview Guide: session core for AI-driven mock interviews.

Generates a fixed question set from a resume, walks the candidate through
it, keeps progress recoverable across restarts, and produces a scored report.
"""

__version__ = "0.1.0"
