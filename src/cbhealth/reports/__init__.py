"""Report generation module for cbhealth."""

from .generator import ReportGenerator, leading_number

__all__ = ["ReportGenerator", "leading_number"]
