"""ASGI entrypoint: ``uvicorn doc_vault.main:app``."""

from doc_vault.api.fastapi import create_app
from doc_vault.app.core.logging import setup_logging

setup_logging()

app = create_app()
