"""FastAPI application factory for the statement-import webhook.

``POST /webhook/transaction`` imports one block of text for the single
user configured through the environment. Authentication is a shared secret
sent in the request body.

The handler is synchronous and runs in FastAPI's threadpool. Imports are
serialized per app, so the duplicate check of one request always sees the
inserts of the request before it.
"""

from __future__ import annotations

import hmac
import logging
import threading
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from jose_import import __version__
from jose_import.config import webhook_settings
from jose_import.llm import TextCompletionAdapter, make_adapter
from jose_import.models import AppConfig
from jose_import.pipeline import process_statement_text
from jose_import.storage import JsonFileStorage, Storage

logger = logging.getLogger(__name__)


class WebhookRequest(BaseModel):
    """Webhook payload. Both fields are optional so that a missing one
    maps to 401/400 instead of a validation error."""

    text: str | None = None
    secret: str | None = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


def _secret_matches(provided: str | None, expected: str) -> bool:
    if not expected or provided is None:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def create_app(
    config: AppConfig | None = None,
    storage: Storage | None = None,
    adapter: TextCompletionAdapter | None = None,
    root: Path | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application config. Defaults to :class:`AppConfig` defaults.
        storage: Transaction store. Defaults to the JSON data file under
            *root*.
        adapter: AI adapter. Defaults to the configured provider.
        root: Project root the data file is resolved against. Defaults to
            the current directory.
    """
    config = config or AppConfig()
    if storage is None:
        storage = JsonFileStorage(config.data_path(root or Path.cwd()))
    if adapter is None:
        adapter = make_adapter(
            config.llm_provider,
            config.llm_model,
            config.llm_api_key_env,
            config.llm_timeout,
        )

    import_lock = threading.Lock()

    app = FastAPI(
        title="José statement import",
        description="Imports bank statement text as categorized transactions",
        version=__version__,
    )

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.post("/webhook/transaction")
    def receive_transaction(payload: WebhookRequest):
        secret, user_id = webhook_settings(config)

        if not _secret_matches(payload.secret, secret):
            logger.warning("Rejected webhook call with invalid secret")
            return _error(401, "Unauthorized")

        if not payload.text:
            return _error(400, "Text required")

        if not user_id:
            logger.error("Webhook user not configured (%s)", config.webhook_user_id_env)
            return _error(500, "Webhook user not configured")

        try:
            with import_lock:
                result = process_statement_text(payload.text, user_id, storage, adapter)
        except Exception as exc:
            logger.exception("Webhook error")
            return _error(500, str(exc))

        if not result.success:
            return JSONResponse(result.to_dict(), status_code=400)
        return result.to_dict()

    return app
