"""assetvault API caller identity.

Resolves the caller identity for a request from the X-AssetVault-API-Key
header against a JSON key registry. The storage layer only authorizes; this
module is the collaborator that supplies ``caller_id`` and answers group
membership questions for ACL grants.

- No header: anonymous caller (public reads only)
- Unknown key: 401
"""

import hmac
import json
import logging
import os
from typing import Annotated

from fastapi import Depends, Request
from pydantic import BaseModel, ValidationError

from assetvault.acl.groups import InMemoryGroupDirectory
from assetvault.api.errors import VaultHttpError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-AssetVault-API-Key"
API_KEYS_ENV = "ASSETVAULT_API_KEYS_JSON"


class CallerContext(BaseModel):
    """Authenticated caller for a request."""

    actor_id: str
    name: str = ""
    groups: frozenset[str] = frozenset()


class ApiKeyRecord(BaseModel):
    """API key registry entry.

    The actor_id is a stable, non-secret identifier for the key holder and
    is the identity ACL policies refer to.
    """

    actor_id: str
    name: str = ""
    groups: list[str] = []


def load_api_key_registry(raw: str | None = None) -> dict[str, ApiKeyRecord]:
    """Load the API key registry.

    Args:
        raw: JSON object mapping keys to records. Defaults to the
            ASSETVAULT_API_KEYS_JSON environment variable.

    Returns:
        Dict mapping API key strings to records; empty if missing or invalid.
    """
    if raw is None:
        raw = os.environ.get(API_KEYS_ENV)
    if not raw:
        return {}

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Failed to parse %s; treating as empty registry", API_KEYS_ENV)
        return {}

    if not isinstance(parsed, dict):
        logger.warning("%s is not a dict; treating as empty registry", API_KEYS_ENV)
        return {}

    registry: dict[str, ApiKeyRecord] = {}
    for key, value in parsed.items():
        if not isinstance(key, str) or not isinstance(value, dict):
            continue
        try:
            registry[key] = ApiKeyRecord.model_validate(value)
        except ValidationError:
            logger.warning("Skipping invalid API key record for actor entry")
            continue

    return registry


def build_group_directory(registry: dict[str, ApiKeyRecord]) -> InMemoryGroupDirectory:
    """Build the group directory implied by the registry's group lists."""
    directory = InMemoryGroupDirectory()
    for record in registry.values():
        for group_id in record.groups:
            directory.add_member(group_id, record.actor_id)
    return directory


def _constant_time_lookup(
    provided_key: str, registry: dict[str, ApiKeyRecord]
) -> ApiKeyRecord | None:
    """Look up an API key comparing every entry with hmac.compare_digest."""
    matched_record: ApiKeyRecord | None = None
    provided_bytes = provided_key.encode("utf-8")

    for registered_key, record in registry.items():
        if hmac.compare_digest(provided_bytes, registered_key.encode("utf-8")):
            matched_record = record

    return matched_record


def resolve_caller(request: Request) -> CallerContext | None:
    """Resolve the caller for ``request``.

    Returns:
        CallerContext, or None for anonymous requests.

    Raises:
        VaultHttpError: 401 if an API key is supplied but not recognized.
    """
    api_key = request.headers.get(API_KEY_HEADER)
    if api_key is None:
        return None

    registry: dict[str, ApiKeyRecord] = getattr(request.app.state, "api_key_registry", {})
    record = _constant_time_lookup(api_key.strip(), registry) if api_key.strip() else None
    if record is None:
        raise VaultHttpError(
            status_code=401,
            code="UNAUTHORIZED",
            message="Invalid or unknown API key",
        )

    caller = CallerContext(
        actor_id=record.actor_id,
        name=record.name,
        groups=frozenset(record.groups),
    )
    request.state.caller = caller
    return caller


def require_caller(
    caller: Annotated[CallerContext | None, Depends(resolve_caller)],
) -> CallerContext:
    """Dependency that rejects anonymous requests with 401."""
    if caller is None:
        raise VaultHttpError(
            status_code=401,
            code="UNAUTHORIZED",
            message=f"Missing {API_KEY_HEADER} header",
        )
    return caller


OptionalCaller = Annotated[CallerContext | None, Depends(resolve_caller)]
RequiredCaller = Annotated[CallerContext, Depends(require_caller)]
