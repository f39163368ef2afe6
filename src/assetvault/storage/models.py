"""assetvault object storage data models.

Provides the visibility partition enum and the sidecar metadata record.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from assetvault.acl.policy import AclPolicy

logger = logging.getLogger(__name__)

SIDECAR_FIELDS = frozenset(
    {"originalName", "size", "uploadedAt", "contentType", "isPrivate", "acl"}
)


class Visibility(StrEnum):
    """Storage partition an object belongs to."""

    PUBLIC = "public"
    PRIVATE = "private"

    @property
    def is_private(self) -> bool:
        return self is Visibility.PRIVATE


@dataclass(frozen=True)
class ObjectMetadata:
    """Sidecar metadata record stored next to an object's bytes.

    An instance built with no arguments is the empty record returned when a
    sidecar is missing or unreadable.

    Attributes:
        original_name: Logical name the object was uploaded under.
        size: Size of the object content in bytes.
        uploaded_at: Timestamp of the last upload.
        content_type: MIME type supplied at upload, if any.
        is_private: True if the object lives in the private partition.
        acl: Access-control policy, if one was configured.
        extra: Caller-supplied metadata fields, preserved verbatim.
    """

    original_name: str = ""
    size: int = 0
    uploaded_at: datetime | None = None
    content_type: str | None = None
    is_private: bool = False
    acl: AclPolicy | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True if no field carries a value (missing or unreadable sidecar)."""
        return self == ObjectMetadata()

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to the sidecar JSON shape.

        Optional fields (``contentType``, ``acl``) are omitted when unset.
        """
        data: dict[str, Any] = dict(self.extra)
        data["originalName"] = self.original_name
        data["size"] = self.size
        data["uploadedAt"] = self.uploaded_at.isoformat() if self.uploaded_at else None
        if self.content_type:
            data["contentType"] = self.content_type
        data["isPrivate"] = self.is_private
        if self.acl is not None:
            data["acl"] = self.acl.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ObjectMetadata:
        """Create metadata from the sidecar JSON shape.

        Tolerates partially-written or hand-edited sidecars: bad values fall
        back to defaults instead of raising.
        """
        uploaded_at_raw = data.get("uploadedAt")
        uploaded_at: datetime | None = None
        if isinstance(uploaded_at_raw, str) and uploaded_at_raw:
            try:
                uploaded_at = datetime.fromisoformat(uploaded_at_raw)
            except ValueError:
                logger.debug("Ignoring unparseable uploadedAt: %r", uploaded_at_raw)

        size_raw = data.get("size")
        try:
            size = int(size_raw) if size_raw is not None else 0
        except (TypeError, ValueError):
            size = 0

        content_type_raw = data.get("contentType")
        content_type = str(content_type_raw) if content_type_raw else None

        acl_raw = data.get("acl")
        acl = AclPolicy.from_dict(acl_raw) if isinstance(acl_raw, Mapping) else None

        original_name_raw = data.get("originalName")

        return cls(
            original_name=str(original_name_raw) if original_name_raw else "",
            size=size,
            uploaded_at=uploaded_at,
            content_type=content_type,
            is_private=bool(data.get("isPrivate", False)),
            acl=acl,
            extra={k: v for k, v in data.items() if k not in SIDECAR_FIELDS},
        )
