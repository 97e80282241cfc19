# arw/reporting/review_card.py
from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Sequence
import datetime as dt

from agents.models import AgentSpec, RunState
from reporting.metrics import MetricsSummary, summarize
from reporting.plots import plot_latency

DEFAULT_NOTES = "## Review Notes\n\nStart by adding agent outputs here."

def add_to_notes(notes: str, text: str, title: str) -> str:
    """Append one agent output to the reviewer's notes under its own heading."""
    return f"{notes}\n\n### {title}\n{text}"

def _fmt_summary(s: MetricsSummary) -> List[str]:
    avg = f"{s.average_latency:.2f}s/step" if s.average_latency is not None else "no data"
    return [
        f"- **Steps**: {s.steps}",
        f"- **Total latency**: {s.total_latency:.2f}s",
        f"- **Total tokens (est.)**: {s.total_tokens}",
        f"- **Average latency**: {avg}",
    ]

def render_review_report(*,
                         timestamp: str,
                         source: str,
                         agents: Sequence[AgentSpec],
                         state: RunState,
                         notes: Optional[str] = None,
                         chart_path: Optional[str] = None) -> str:
    """
    Build the Markdown review report for one finished run.
    """
    summary = summarize(state.metrics)

    md = []
    md.append("# Review Report")
    md.append("")
    md.append(f"- **Timestamp**: {timestamp}")
    md.append(f"- **Source document**: {source}")
    md.append(f"- **Agents**: {len(agents)}")
    md.append("")
    md.append("## Pipeline")
    if agents:
        for i, a in enumerate(agents):
            md.append(f"{i + 1}. **{a.name}** ({a.model}, T={a.temperature}, max {a.max_tokens})")
    else:
        md.append("- (none)")
    md.append("")
    md.append("## Agent Outputs")
    if not agents:
        md.append("- (none)")
    for i, a in enumerate(agents):
        out = state.outputs[i] if i < len(state.outputs) else ""
        md.append(f"### {a.name}")
        md.append(out if out else "_(not produced)_")
        md.append("")
    md.append("## Metrics")
    md.extend(_fmt_summary(summary))
    md.append("")
    if state.metrics:
        md.append("| Agent | Latency (s) | Tokens (est.) | Provider |")
        md.append("|---|---|---|---|")
        for m in state.metrics:
            md.append(f"| {m.agent_name} | {m.latency:.2f} | {m.tokens} | {m.provider} |")
        md.append("")
    if chart_path:
        md.append(f"![Performance by Agent]({Path(chart_path).name})")
        md.append("")
    md.append("## Failed Steps")
    if state.failed_steps:
        for i in state.failed_steps:
            name = agents[i].name if i < len(agents) else f"step {i + 1}"
            md.append(f"- {name}")
    else:
        md.append("- (none)")
    md.append("")
    if notes:
        md.append(notes)
        md.append("")
    return "\n".join(md)

def write_review_report(*,
                        reports_dir: str,
                        source: str,
                        agents: Sequence[AgentSpec],
                        state: RunState,
                        notes: Optional[str] = None,
                        chart: bool = True) -> str:
    """
    Write the Markdown report (plus latency chart when there are metrics) and return its path.
    """
    outdir = Path(reports_dir); outdir.mkdir(parents=True, exist_ok=True)
    now = dt.datetime.now()
    stamp = now.strftime("%Y%m%d_%H%M%S_%f")
    chart_path = None
    if chart and state.metrics:
        chart_path = plot_latency(state.metrics, output_dir=str(outdir),
                                  filename=f"latency_{stamp}.png")
    text = render_review_report(
        timestamp=now.isoformat(timespec="seconds"),
        source=source,
        agents=agents,
        state=state,
        notes=notes,
        chart_path=chart_path,
    )
    out_path = outdir / f"review_report_{stamp}.md"
    out_path.write_text(text, encoding="utf-8")
    return str(out_path)
