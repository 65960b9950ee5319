"""ASGI entrypoint for uvicorn."""

from app import create_app

app = create_app()
