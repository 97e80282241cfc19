# arw/apps/api/main.py
from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from agents import config
from agents.chain import ChainExecutor
from agents.defaults import default_agents
from agents.errors import ConcurrentRunError, ReviewError
from agents.models import AgentSpec, RunState
from agents.nodes.llm import GenerationClient, TextProvider
from reporting.metrics import MetricsSummary, summarize
from reporting.review_card import write_review_report
from tools.ocr_mock import extract_text

config.configure_logging()
logger = logging.getLogger(__name__)

REPORTS_DIR = config.REPORTS_DIR
Path(REPORTS_DIR).mkdir(parents=True, exist_ok=True)

# --------- FastAPI app & CORS ----------
app = FastAPI(title="Agentic Review API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Static serving of review reports and charts
app.mount(
    "/reports",
    StaticFiles(directory=Path(REPORTS_DIR).resolve().as_posix()),
    name="reports",
)

# Overridable in tests; None means the default Gemini provider.
PROVIDER: Optional[TextProvider] = None

# One executor per (hashed) API key while a run is in flight, so two runs on
# the same key cannot overlap. Idle executors are dropped on the next lookup.
_EXECUTORS: Dict[str, ChainExecutor] = {}

# --------- Pydantic models ----------
class RunRequest(BaseModel):
    text: str = Field(..., description="Extracted document text (the seed context)")
    agents: Optional[List[AgentSpec]] = Field(None, description="Pipeline; defaults to the built-in agents")
    api_key: Optional[str] = Field(None, description="Gemini API key; defaults to GEMINI_API_KEY")
    source: str = Field("uploaded document", description="Label used in the report")
    notes: Optional[str] = None
    write_report: bool = True

class RunResponse(BaseModel):
    state: RunState
    summary: MetricsSummary
    report_path: Optional[str] = None
    report_url: Optional[str] = None

class ExtractResponse(BaseModel):
    filename: str
    text: str
    chars: int

# --------- Helpers ----------
def _rel_report_url(abs_path: str) -> Optional[str]:
    """
    Convert a filesystem path to a /reports URL if it lives under REPORTS_DIR.
    """
    try:
        p = Path(abs_path).resolve()
        rel = p.relative_to(Path(REPORTS_DIR).resolve())
        return f"/reports/{rel.as_posix()}"
    except ValueError:
        return None

def _key_id(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()

def _executor(api_key: str) -> ChainExecutor:
    for k in [k for k, ex in _EXECUTORS.items() if not ex.running]:
        del _EXECUTORS[k]
    key = _key_id(api_key)
    ex = _EXECUTORS.get(key)
    if ex is None:
        ex = ChainExecutor(GenerationClient(api_key, provider=PROVIDER))
        _EXECUTORS[key] = ex
    return ex

def _start(req: RunRequest):
    agents = req.agents if req.agents is not None else default_agents()
    api_key = req.api_key if req.api_key is not None else config.GEMINI_API_KEY
    logger.info("Run requested: %d agents, %d chars of input", len(agents), len(req.text))
    try:
        stream = _executor(api_key).run(req.text, agents)
    except ConcurrentRunError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ReviewError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return agents, stream

# --------- Routes ----------
@app.get("/health")
def health():
    return {"status": "ok", "reports": REPORTS_DIR, "model": config.DEFAULT_MODEL}

@app.get("/agents", response_model=List[AgentSpec])
def agents_default():
    return default_agents()

@app.post("/extract", response_model=ExtractResponse)
async def extract(file: UploadFile = File(...)):
    data = await file.read()
    text = extract_text(file.filename or "upload.pdf", data)
    return ExtractResponse(filename=file.filename or "", text=text, chars=len(text))

@app.post("/run", response_model=RunResponse)
async def run(req: RunRequest):
    agents, stream = _start(req)
    final = RunState()
    async for snap in stream:
        final = snap

    report_path = None
    if req.write_report:
        report_path = write_review_report(
            reports_dir=REPORTS_DIR,
            source=req.source,
            agents=agents,
            state=final,
            notes=req.notes,
        )
    return RunResponse(
        state=final,
        summary=summarize(final.metrics),
        report_path=report_path,
        report_url=_rel_report_url(report_path) if report_path else None,
    )

@app.post("/run/stream")
async def run_stream(req: RunRequest):
    """
    NDJSON stream: one RunState per line, as each step starts and completes.
    The last line has running=false and current_step=null.
    """
    _, stream = _start(req)

    async def lines() -> AsyncIterator[str]:
        try:
            async for snap in stream:
                yield snap.model_dump_json() + "\n"
        finally:
            await stream.aclose()

    return StreamingResponse(lines(), media_type="application/x-ndjson")

@app.get("/reports-index")
def reports_index() -> Dict[str, Any]:
    files = sorted(Path(REPORTS_DIR).glob("review_report_*.md"), reverse=True)
    return {"reports": [{"name": f.name, "url": _rel_report_url(str(f))} for f in files]}
