# arw/apps/cli/__init__.py
from __future__ import annotations
import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from agents import config
from agents.chain import ChainExecutor
from agents.defaults import default_agents, load_agents, save_agents
from agents.errors import ReviewError
from agents.models import RunState
from agents.nodes.llm import GenerationClient
from reporting.metrics import summarize
from reporting.review_card import write_review_report
from tools.ocr_mock import MOCK_OCR_TEXT, extract_text

def _progress(snap: RunState, total: int) -> None:
    if not snap.running:
        typer.echo(f"✅ Run finished ({len(snap.metrics)}/{total} steps).")
        return
    i = snap.current_step
    if i is None:
        return
    if len(snap.metrics) > i:
        m = snap.metrics[i]
        mark = "⚠️ " if i in snap.failed_steps else "   "
        typer.echo(f"{mark}[{i + 1}/{total}] {m.agent_name}: {m.latency:.2f}s, ~{m.tokens} tokens")
    else:
        typer.echo(f"⏳ [{i + 1}/{total}] running...")

def _build_app() -> typer.Typer:
    app = typer.Typer(help="Agentic Review Workbench - CLI")

    @app.command("agents")
    def agents_cmd(
        out: Optional[Path] = typer.Option(None, "--out", help="Write the default pipeline to this JSON file"),
    ):
        """Show (or dump) the default agent pipeline."""
        agents = default_agents()
        if out:
            typer.echo(f"Wrote {len(agents)} agents to '{save_agents(agents, out)}'.")
            return
        for i, a in enumerate(agents):
            typer.echo(f"{i + 1}. {a.name} [{a.model}, T={a.temperature}, max={a.max_tokens}]")
            typer.echo(f"   {a.description}")

    @app.command("extract")
    def extract_cmd(path: Path = typer.Argument(..., help="Document to extract (PDF is simulated)")):
        """Print the text the pipeline would receive for a document."""
        if path.suffix.lower() in {".txt", ".md", ".markdown"} and not path.exists():
            typer.echo(f"File not found: {path}", err=True)
            raise typer.Exit(code=1)
        typer.echo(extract_text(str(path)))

    @app.command("run")
    def run_cmd(
        input_path: Optional[Path] = typer.Option(None, "--input", "-i", help="Document to review; omit for the demo OCR text"),
        agents_file: Optional[Path] = typer.Option(None, "--agents", help="JSON agent list; defaults to the built-in pipeline"),
        api_key: str = typer.Option(config.GEMINI_API_KEY, "--api-key", envvar="GEMINI_API_KEY", help="Gemini API key"),
        reports_dir: str = typer.Option(config.REPORTS_DIR, "--reports-dir", help="Where the review report is written"),
        as_json: bool = typer.Option(False, "--json", help="Print the final run state as JSON"),
    ):
        """Run every agent over the document, in order, and write a review report."""
        config.configure_logging("WARNING")
        if input_path and not input_path.exists():
            typer.echo(f"File not found: {input_path}", err=True)
            raise typer.Exit(code=1)
        text = extract_text(str(input_path)) if input_path else MOCK_OCR_TEXT
        agents = load_agents(agents_file) if agents_file else default_agents()
        executor = ChainExecutor(GenerationClient(api_key))
        executor.subscribe(lambda snap: _progress(snap, len(agents)))
        try:
            final = asyncio.run(executor.run_to_completion(text, agents))
        except ReviewError as e:
            typer.echo(f"❌ {e}", err=True)
            raise typer.Exit(code=2)

        s = summarize(final.metrics)
        avg = f"{s.average_latency:.2f}s/step" if s.average_latency is not None else "no data"
        typer.echo(f"   Total latency: {s.total_latency:.2f}s | Tokens (est.): {s.total_tokens} | Avg: {avg}")
        if final.failed_steps:
            typer.echo(f"   Failed steps: {', '.join(str(i + 1) for i in final.failed_steps)}")
        report = write_review_report(
            reports_dir=reports_dir,
            source=str(input_path) if input_path else "demo OCR text",
            agents=agents,
            state=final,
        )
        typer.echo(f"   Report: {report}")
        if as_json:
            typer.echo(json.dumps(final.model_dump(mode="json"), ensure_ascii=False, indent=2))

    return app

# The Typer group we will invoke from __main__
app = _build_app()
