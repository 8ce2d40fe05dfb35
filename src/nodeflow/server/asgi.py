"""ASGI entry point for running the server via the uvicorn CLI.

    python -m uvicorn nodeflow.server.asgi:app --host ... --port ...
"""

from nodeflow.config.loader import load_config
from nodeflow.server.app import build_app

app = build_app(load_config())
