"""
Health Inspection
------------------
Host health snapshot for the "system status" command.

Design:
- Fresh snapshot on every call (never cached)
- Read-only: no side effects on the host
- Each metric is read independently; a failing metric is marked
  unavailable instead of failing the whole report
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import os
import time

import psutil


UNAVAILABLE = "unavailable"

# Thresholds for the one-word verdict
MEMORY_HEALTHY_BELOW = 0.90
LOAD_PER_CPU_HEALTHY_BELOW = 1.0


@dataclass
class HealthReport:
    """
    Snapshot of host health.

    A metric that could not be read is None and listed in `unavailable`.
    """
    uptime_seconds: Optional[float] = None
    memory_used_ratio: Optional[float] = None
    load_average: Optional[Tuple[float, float, float]] = None
    cpu_count: Optional[int] = None
    collected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    unavailable: List[str] = field(default_factory=list)

    @property
    def is_healthy(self) -> bool:
        """Healthy unless a known metric is over its threshold."""
        if self.memory_used_ratio is not None and self.memory_used_ratio >= MEMORY_HEALTHY_BELOW:
            return False
        if self.load_average is not None:
            per_cpu = self.load_average[0] / max(self.cpu_count or 1, 1)
            if per_cpu >= LOAD_PER_CPU_HEALTHY_BELOW:
                return False
        return True

    @property
    def memory_percent(self) -> Optional[int]:
        if self.memory_used_ratio is None:
            return None
        return round(self.memory_used_ratio * 100)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API/logging."""
        return {
            "uptime_seconds": self.uptime_seconds,
            "memory_used_ratio": self.memory_used_ratio,
            "load_average": list(self.load_average) if self.load_average else None,
            "cpu_count": self.cpu_count,
            "collected_at": self.collected_at.isoformat(),
            "unavailable": list(self.unavailable),
            "healthy": self.is_healthy,
        }


class HealthInspector:
    """
    Reads host metrics into a HealthReport.

    Passive observability only. Does not cache, does not act.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._logger = logging.getLogger("jarvis.health")

    def inspect(self) -> HealthReport:
        """Take a fresh snapshot of host health."""
        report = HealthReport()

        report.uptime_seconds = self._read("uptime", report, self._read_uptime)
        report.memory_used_ratio = self._read("memory", report, self._read_memory)
        report.load_average = self._read("load", report, self._read_load)
        report.cpu_count = self._read("cpu_count", report, self._read_cpu_count)

        return report

    def _read(self, metric: str, report: HealthReport, reader: Callable[[], Any]) -> Any:
        try:
            return reader()
        except Exception as e:
            self._logger.warning(f"Health metric '{metric}' unavailable: {e}")
            report.unavailable.append(metric)
            return None

    def _read_uptime(self) -> float:
        return max(self._clock() - psutil.boot_time(), 0.0)

    def _read_memory(self) -> float:
        mem = psutil.virtual_memory()
        return round(mem.percent / 100.0, 4)

    def _read_load(self) -> Tuple[float, float, float]:
        one, five, fifteen = psutil.getloadavg()
        return (round(one, 2), round(five, 2), round(fifteen, 2))

    def _read_cpu_count(self) -> int:
        count = psutil.cpu_count() or os.cpu_count()
        if not count:
            raise RuntimeError("cpu count unknown")
        return count


def format_duration(seconds: Optional[float]) -> str:
    """Human-readable duration: '3 days, 4 hours', '12 minutes'."""
    if seconds is None:
        return UNAVAILABLE

    seconds = int(seconds)
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60

    parts = []
    if days:
        parts.append(f"{days} day{'s' if days != 1 else ''}")
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes and not days:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")

    return ", ".join(parts) if parts else "less than a minute"
