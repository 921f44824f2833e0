"""Schema package for external and internal contracts."""

from .requests import GradingRunOptions
from .responses import GradingRunReport, RunLogEntry

__all__ = ["GradingRunOptions", "GradingRunReport", "RunLogEntry"]
