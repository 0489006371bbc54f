"""Developer tools for the lightweight XML parser."""

from .profiling import ParseProfiler, ProfilingReport, StagePerformance

__all__ = [
    "ParseProfiler",
    "ProfilingReport",
    "StagePerformance",
]
