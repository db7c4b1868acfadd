"""Document generation function (stub).

Request::

    {"action": "generateSourceDocument",
     "userEmail": "...",
     "ctx": {"person": {...}, "contract": {...}}}

Response::

    {"sourceDocumentUrl": "...", "files": [{"name": "...", "url": "..."}]}

or ``{"error": "<message>"}`` with status 400.

A real generator would fetch the template, fill its placeholders, render
the document and upload it. This one waits and answers with placeholder
URLs, keeping the request/response shape intact.
"""

import logging
import time
from typing import Tuple

logger = logging.getLogger(__name__)

ACTION = "generateSourceDocument"
PLACEHOLDER_URL = "https://example.com/documents/contract.pdf"


def handle_generate_document(payload: dict, delay: float = 2.0) -> Tuple[dict, int]:
    """Answer one invocation. Returns (body, HTTP status)."""
    if not isinstance(payload, dict) or payload.get("action") != ACTION:
        return {"error": "Invalid action"}, 400
    ctx = payload.get("ctx") or {}
    if "person" not in ctx or "contract" not in ctx:
        return {"error": "Missing person or contract context"}, 400

    logger.info(f"Generating source document for {payload.get('userEmail', 'unknown user')}")
    if delay > 0:
        time.sleep(delay)

    return {
        "sourceDocumentUrl": PLACEHOLDER_URL,
        "files": [
            {"name": "Contract.pdf", "url": PLACEHOLDER_URL},
        ],
    }, 200
