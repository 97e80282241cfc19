# arw/tools/templates.py
from __future__ import annotations
from functools import lru_cache
from pathlib import Path
from typing import List
from jinja2 import Template

# templates/ directory lives next to this file
TEMPL_DIR = (Path(__file__).resolve().parent / "templates").resolve()
PROMPT_TEMPLATE = "review_step.j2"

def list_templates() -> List[str]:
    """Return all available .j2 templates by filename."""
    return sorted([p.name for p in TEMPL_DIR.glob("*.j2")])

@lru_cache(maxsize=None)
def _load(name: str) -> Template:
    path = TEMPL_DIR / name
    if not path.exists():
        raise FileNotFoundError(f"Template not found: {path}")
    return Template(path.read_text(encoding="utf-8"))

def compose_prompt(system_prompt: str, user_prompt: str, context: str,
                   name: str = PROMPT_TEMPLATE) -> str:
    """
    Render the full prompt for one agent step: system instruction, user
    instruction and context data, each under its own heading, in that order.
    Raises FileNotFoundError if the template is missing.
    """
    return _load(name).render(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        context=context,
    )
