from __future__ import annotations

"""
Network Communication Infrastructure.

Blocking HTTP helpers built on requests. Each call opens its own session;
callers needing concurrency run them in worker threads.
"""

from ragutil.infra.network.common import is_success, new_session
from ragutil.infra.network.document_client import get_document
from ragutil.infra.network.extraction_client import post_json

__all__ = [
    "get_document",
    "post_json",
    "new_session",
    "is_success",
]
