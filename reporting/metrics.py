# arw/reporting/metrics.py
from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from pydantic import BaseModel

from agents.models import ExecutionMetric

class MetricsSummary(BaseModel):
    steps: int
    total_latency: float
    total_tokens: int
    average_latency: Optional[float] = None  # None = no data

def total_latency(metrics: Sequence[ExecutionMetric]) -> float:
    return sum(m.latency for m in metrics)

def total_tokens(metrics: Sequence[ExecutionMetric]) -> int:
    return sum(m.tokens for m in metrics)

def average_latency(metrics: Sequence[ExecutionMetric]) -> float:
    """Seconds per step. Raises ZeroDivisionError when there are no metrics."""
    if not metrics:
        raise ZeroDivisionError("average latency is undefined for an empty metric list")
    return total_latency(metrics) / len(metrics)

def metrics_from_records(records: Sequence[Dict[str, Any]]) -> List[ExecutionMetric]:
    """Rebuild metrics from their JSON form (e.g. a streamed RunState)."""
    return [ExecutionMetric.model_validate(r) for r in records]

def summarize(metrics: Sequence[ExecutionMetric]) -> MetricsSummary:
    return MetricsSummary(
        steps=len(metrics),
        total_latency=total_latency(metrics),
        total_tokens=total_tokens(metrics),
        average_latency=average_latency(metrics) if metrics else None,
    )

COLUMNS: List[str] = ["agent_name", "latency", "tokens", "provider", "timestamp"]

def metrics_frame(metrics: Sequence[ExecutionMetric]) -> pd.DataFrame:
    """One row per completed step, in step order."""
    return pd.DataFrame([m.model_dump() for m in metrics], columns=COLUMNS)
