# arw/apps/cli/__main__.py
from __future__ import annotations
from apps.cli import app

if __name__ == "__main__":
    app()
