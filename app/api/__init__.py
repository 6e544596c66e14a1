"""
API module initialization
"""

from . import reviews, health

__all__ = ["reviews", "health"]
