"""FastAPI dependencies shared by assetvault routes."""

from typing import Annotated

from fastapi import Depends, Request

from assetvault.storage.filesystem_store import FilesystemObjectStore


def get_object_store(request: Request) -> FilesystemObjectStore:
    """Return the store instance the app was created with."""
    store: FilesystemObjectStore = request.app.state.object_store
    return store


StoreDep = Annotated[FilesystemObjectStore, Depends(get_object_store)]
