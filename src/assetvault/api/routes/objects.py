"""Object routes for the assetvault API.

Provides:
- GET    /v1/objects/{visibility}                  (list, ?prefix=)
- POST   /v1/objects/{visibility}                  (upload under a generated unique name)
- PUT    /v1/objects/{visibility}/{name}           (upload / overwrite)
- GET    /v1/objects/{visibility}/{name}           (download)
- DELETE /v1/objects/{visibility}/{name}
- GET    /v1/objects/{visibility}/{name}/metadata
- GET    /v1/objects/{visibility}/{name}/acl
- PUT    /v1/objects/{visibility}/{name}/acl

Authorization is decided by the object store; these routes only supply the
caller identity and translate outcomes into HTTP responses.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Header, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from assetvault.acl.policy import AclGrant, AclPolicy, Permission
from assetvault.api.auth import OptionalCaller, RequiredCaller
from assetvault.api.deps import StoreDep
from assetvault.api.errors import VaultHttpError, raise_for_outcome
from assetvault.storage.models import ObjectMetadata, Visibility
from assetvault.storage.response import BufferedResponseSink

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/objects", tags=["Objects"])

FILE_NAME_HEADER = "X-File-Name"


class AclGrantModel(BaseModel):
    """One ACL grant."""

    model_config = ConfigDict(extra="forbid")

    grantee_id: Annotated[str, Field(min_length=1)]
    permission: Permission


class AclPolicyModel(BaseModel):
    """ACL policy request/response body."""

    model_config = ConfigDict(extra="forbid")

    owner_id: str | None = None
    grants: list[AclGrantModel] = []

    def to_policy(self) -> AclPolicy:
        return AclPolicy(
            owner_id=self.owner_id,
            grants=tuple(AclGrant(g.grantee_id, g.permission) for g in self.grants),
        )

    @classmethod
    def from_policy(cls, policy: AclPolicy) -> AclPolicyModel:
        return cls(
            owner_id=policy.owner_id,
            grants=[
                AclGrantModel(grantee_id=g.grantee_id, permission=g.permission)
                for g in policy.grants
            ],
        )


class ObjectMetadataResponse(BaseModel):
    """Metadata record of a stored object."""

    name: str
    visibility: Visibility
    original_name: str
    size: int
    uploaded_at: datetime | None
    content_type: str | None
    is_private: bool
    acl: AclPolicyModel | None = None
    extra: dict[str, Any] = {}


class ObjectListResponse(BaseModel):
    """Sorted object names in a partition."""

    visibility: Visibility
    prefix: str
    items: list[str]


def _to_metadata_response(
    name: str, visibility: Visibility, record: ObjectMetadata
) -> ObjectMetadataResponse:
    return ObjectMetadataResponse(
        name=name,
        visibility=visibility,
        original_name=record.original_name,
        size=record.size,
        uploaded_at=record.uploaded_at,
        content_type=record.content_type,
        is_private=record.is_private,
        acl=AclPolicyModel.from_policy(record.acl) if record.acl is not None else None,
        extra=record.extra,
    )


def _sink_to_response(sink: BufferedResponseSink) -> Response:
    if sink.json_body is not None:
        return JSONResponse(status_code=sink.status_code, content=sink.json_body)
    return Response(content=sink.body, status_code=sink.status_code, headers=sink.headers)


def _require_permission(
    store: StoreDep,
    name: str,
    visibility: Visibility,
    caller_id: str | None,
    permission: Permission,
) -> None:
    if not store.exists(name, visibility=visibility):
        raise VaultHttpError(status_code=404, code="NOT_FOUND", message="Object not found")
    if not store.can_access(name, permission, visibility=visibility, caller_id=caller_id):
        raise VaultHttpError(
            status_code=403,
            code="ACCESS_DENIED",
            message=f"Caller lacks {permission.value} permission",
        )


@router.get("/{visibility}", response_model=ObjectListResponse)
def list_objects(
    visibility: Visibility,
    store: StoreDep,
    caller: OptionalCaller,
    prefix: Annotated[str, Query(max_length=200)] = "",
) -> ObjectListResponse:
    """List object names in a partition.

    Listing the private partition requires an identified caller.
    """
    if visibility.is_private and caller is None:
        raise VaultHttpError(
            status_code=401, code="UNAUTHORIZED", message="Private listing requires a caller"
        )
    return ObjectListResponse(
        visibility=visibility,
        prefix=prefix,
        items=store.list_objects(prefix, visibility=visibility),
    )


async def _upload(
    request: Request,
    store: StoreDep,
    caller_id: str,
    name: str,
    visibility: Visibility,
) -> ObjectMetadataResponse:
    data = await request.body()
    content_type = request.headers.get("content-type")

    outcome = store.upload(
        name,
        data,
        visibility=visibility,
        content_type=content_type,
        caller_id=caller_id,
    )
    raise_for_outcome(outcome)
    assert outcome.value is not None
    return _to_metadata_response(name, visibility, outcome.value)


@router.post("/{visibility}", status_code=201, response_model=ObjectMetadataResponse)
async def create_object(
    visibility: Visibility,
    request: Request,
    store: StoreDep,
    caller: RequiredCaller,
    file_name: Annotated[str, Header(alias=FILE_NAME_HEADER, min_length=1)],
) -> ObjectMetadataResponse:
    """Upload under a unique name derived from the X-File-Name header."""
    name = store.generate_unique_file_name(file_name)
    return await _upload(request, store, caller.actor_id, name, visibility)


@router.put("/{visibility}/{name}", status_code=201, response_model=ObjectMetadataResponse)
async def put_object(
    visibility: Visibility,
    name: str,
    request: Request,
    store: StoreDep,
    caller: RequiredCaller,
) -> ObjectMetadataResponse:
    """Upload or overwrite an object. A new object is owned by the caller."""
    return await _upload(request, store, caller.actor_id, name, visibility)


@router.get("/{visibility}/{name}")
def get_object(
    visibility: Visibility,
    name: str,
    store: StoreDep,
    caller: OptionalCaller,
) -> Response:
    """Download an object's bytes."""
    sink = BufferedResponseSink()
    store.download_to_response(
        name,
        sink,
        visibility=visibility,
        caller_id=caller.actor_id if caller else None,
        cache_max_age=store.settings.cache_max_age,
    )
    return _sink_to_response(sink)


@router.delete("/{visibility}/{name}", status_code=204)
def delete_object(
    visibility: Visibility,
    name: str,
    store: StoreDep,
    caller: RequiredCaller,
) -> Response:
    """Delete an object. Requires WRITE."""
    raise_for_outcome(store.delete(name, visibility=visibility, caller_id=caller.actor_id))
    return Response(status_code=204)


@router.get("/{visibility}/{name}/metadata", response_model=ObjectMetadataResponse)
def get_object_metadata(
    visibility: Visibility,
    name: str,
    store: StoreDep,
    caller: OptionalCaller,
) -> ObjectMetadataResponse:
    """Return an object's metadata. Private objects require READ."""
    if visibility.is_private:
        _require_permission(
            store, name, visibility, caller.actor_id if caller else None, Permission.READ
        )

    outcome = store.get_metadata(name, visibility=visibility)
    raise_for_outcome(outcome)
    assert outcome.value is not None
    return _to_metadata_response(name, visibility, outcome.value)


@router.get("/{visibility}/{name}/acl", response_model=AclPolicyModel)
def get_object_acl(
    visibility: Visibility,
    name: str,
    store: StoreDep,
    caller: RequiredCaller,
) -> AclPolicyModel:
    """Return an object's ACL. Requires ADMIN."""
    _require_permission(store, name, visibility, caller.actor_id, Permission.ADMIN)
    return AclPolicyModel.from_policy(store.get_acl(name, visibility=visibility))


@router.put("/{visibility}/{name}/acl", response_model=AclPolicyModel)
def put_object_acl(
    visibility: Visibility,
    name: str,
    body: AclPolicyModel,
    store: StoreDep,
    caller: RequiredCaller,
) -> AclPolicyModel:
    """Replace an object's ACL. Requires ADMIN."""
    outcome = store.set_acl(
        name,
        body.to_policy(),
        visibility=visibility,
        caller_id=caller.actor_id,
    )
    raise_for_outcome(outcome)
    assert outcome.value is not None
    return AclPolicyModel.from_policy(outcome.value)
