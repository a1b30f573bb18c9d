"""
Compute utilities: execution timing and numerical tolerances.
"""

from survstats.core.compute.timing import Timer, timed
from survstats.core.compute.tolerances import ToleranceTier, CPU_FP64

__all__ = ["Timer", "timed", "ToleranceTier", "CPU_FP64"]
