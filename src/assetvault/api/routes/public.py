"""Public object serving from the configured search paths.

GET /public-objects/{name} looks the name up in each directory listed in
PUBLIC_OBJECT_SEARCH_PATHS, in order, and serves the first match. No caller
identity is needed; only public content belongs in these directories.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response

from assetvault.api.deps import StoreDep
from assetvault.api.errors import VaultHttpError
from assetvault.storage.errors import InvalidObjectNameError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Public Objects"])


@router.get("/public-objects/{name}")
def get_public_object(name: str, store: StoreDep) -> Response:
    """Serve a public object found on the search paths."""
    try:
        path = store.locate_public_object(name)
    except InvalidObjectNameError as e:
        raise VaultHttpError(status_code=400, code="VALIDATION", message=e.message) from e

    if path is None:
        raise VaultHttpError(status_code=404, code="NOT_FOUND", message="Object not found")

    try:
        body = path.read_bytes()
    except OSError as e:
        logger.error("Failed to read public object %s: %s", path.name, e)
        raise VaultHttpError(
            status_code=500, code="IO_FAILURE", message="Storage operation failed"
        ) from e

    headers = {
        "Content-Length": str(len(body)),
        "Cache-Control": f"public, max-age={store.settings.cache_max_age}",
    }
    content_type = store.metadata_for(path).content_type
    if content_type:
        headers["Content-Type"] = content_type
    return Response(content=body, status_code=200, headers=headers)
