"""
IO module for interview interfaces.
"""

from interview_guide.io.text_interface import TextInterface

__all__ = ["TextInterface"]
