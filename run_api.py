"""Helper launcher to run the webhook receiver without worrying about PYTHONPATH.

Usage (from project root):
  FORM_SECRET_KEY=... FORM_POST_URI=https://example.com/submissions python run_api.py

Listens on 0.0.0.0:8080, i.e. every interface, so the platform can reach the
webhook. Terminate TLS in front of it; use 127.0.0.1 for local-only testing.
"""
from __future__ import annotations

import logging
import pathlib
import sys

ROOT = pathlib.Path(__file__).parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from formhook.api.main import app  # noqa: E402

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8080, reload=False)
