# arw/reporting/plots.py
from __future__ import annotations
from pathlib import Path
from typing import Sequence

# use a non-interactive backend for headless environments
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from agents.models import ExecutionMetric
from reporting.metrics import metrics_frame

def plot_latency(metrics: Sequence[ExecutionMetric], output_dir: str = "reports",
                 filename: str = "latency.png") -> str:
    """
    Save a per-agent latency bar chart (token estimate annotated on each bar).
    Returns the PNG path.
    """
    outdir = Path(output_dir); outdir.mkdir(parents=True, exist_ok=True)
    df = metrics_frame(metrics)
    fig, ax = plt.subplots(figsize=(max(6, 1.6 * len(df)), 4))
    bars = ax.bar(range(len(df)), df["latency"])
    ax.set_xticks(range(len(df)))
    ax.set_xticklabels(df["agent_name"], rotation=20, ha="right", fontsize=8)
    for bar, tok in zip(bars, df["tokens"]):
        ax.annotate(f"{tok} tok", (bar.get_x() + bar.get_width() / 2, bar.get_height()),
                    ha="center", va="bottom", fontsize=7)
    ax.set_ylabel("Latency (s)")
    ax.set_title("Performance by Agent")
    out = outdir / filename
    fig.savefig(out, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return str(out)
