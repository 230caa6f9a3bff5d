"""Service modules"""
from .analytics import PositionAnalytics

__all__ = ["PositionAnalytics"]
