from __future__ import annotations

from typing import Any, Dict

from bot_orchestrator.config import MIB
from bot_orchestrator.core.models import MetricsView


def _cpu_percent(cur_cpu: float, prev_cpu: float, cur_system: float, prev_system: float, online_cpus: int) -> float:
    system_delta = cur_system - prev_system
    if system_delta <= 0:
        return 0.0
    return (cur_cpu - prev_cpu) / system_delta * online_cpus * 100.0


def compute_metrics(
    cur_cpu: float,
    prev_cpu: float,
    cur_system: float,
    prev_system: float,
    online_cpus: int,
    memory_usage: float,
    memory_limit: float,
) -> MetricsView:
    """Normalize raw counters into display percentages and MiB, rounded to 2 places."""
    cpu = _cpu_percent(cur_cpu, prev_cpu, cur_system, prev_system, online_cpus or 1)
    mem_percent = (memory_usage / memory_limit) * 100.0 if memory_limit > 0 else 0.0
    return MetricsView(
        cpu_percent=round(cpu, 2),
        memory_usage_mib=round(memory_usage / MIB, 2),
        memory_limit_mib=round(memory_limit / MIB, 2),
        memory_percent=round(mem_percent, 2),
    )


def metrics_from_stats(stats: Dict[str, Any]) -> MetricsView:
    """Convert a single-shot Docker stats document into a MetricsView."""
    cpu = stats.get("cpu_stats", {}) or {}
    precpu = stats.get("precpu_stats", {}) or {}
    cpu_usage = cpu.get("cpu_usage", {}) or {}
    precpu_usage = precpu.get("cpu_usage", {}) or {}
    online_cpus = cpu.get("online_cpus") or len(cpu_usage.get("percpu_usage") or []) or 1

    mem = stats.get("memory_stats", {}) or {}

    return compute_metrics(
        cur_cpu=float(cpu_usage.get("total_usage", 0) or 0),
        prev_cpu=float(precpu_usage.get("total_usage", 0) or 0),
        cur_system=float(cpu.get("system_cpu_usage", 0) or 0),
        prev_system=float(precpu.get("system_cpu_usage", 0) or 0),
        online_cpus=int(online_cpus),
        memory_usage=float(mem.get("usage", 0) or 0),
        memory_limit=float(mem.get("limit", 0) or 0),
    )


__all__ = ["compute_metrics", "metrics_from_stats"]
