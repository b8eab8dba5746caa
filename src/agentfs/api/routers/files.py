"""Files router - sandboxed list/read/write/delete."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from agentfs.api.dependencies import get_file_store, require_write_access
from agentfs.infrastructure.storage.file_store import FileStore

router = APIRouter(prefix="/files", tags=["files"])


class EntryResponse(BaseModel):
    name: str
    kind: str


class WriteRequest(BaseModel):
    """Exactly one of `contents` / `patch` must be provided."""
    file: str
    contents: Optional[str] = None
    patch: Optional[str] = Field(default=None, description="unified diff instead of full overwrite")
    expected_sha256: Optional[str] = None


class WriteResponse(BaseModel):
    ok: bool
    path: str
    wroteBytes: int
    sha256: str
    patched: bool


class DeleteRequest(BaseModel):
    path: str


class DeleteResponse(BaseModel):
    ok: bool
    path: str
    deleted: bool


@router.get("/list", response_model=List[EntryResponse])
def list_files(
    dir: str = Query(".", description="Directory relative to the project root"),
    store: FileStore = Depends(get_file_store),
) -> List[EntryResponse]:
    return [EntryResponse(**entry.to_dict()) for entry in store.list(dir)]


@router.get("/read", response_class=PlainTextResponse)
def read_file(
    file: str = Query(..., description="File relative to the project root"),
    max_bytes: Optional[int] = Query(None, ge=0),
    store: FileStore = Depends(get_file_store),
) -> PlainTextResponse:
    return PlainTextResponse(store.read_text(file, max_bytes))


@router.post("/write", response_model=WriteResponse, dependencies=[Depends(require_write_access)])
def write_file(
    request: WriteRequest,
    store: FileStore = Depends(get_file_store),
) -> WriteResponse:
    result = store.write(
        request.file,
        contents=request.contents,
        patch=request.patch,
        expected_sha256=request.expected_sha256,
    )
    return WriteResponse(**result.to_dict())


@router.post("/delete", response_model=DeleteResponse, dependencies=[Depends(require_write_access)])
def delete_path(
    request: DeleteRequest,
    store: FileStore = Depends(get_file_store),
) -> DeleteResponse:
    return DeleteResponse(**store.delete(request.path).to_dict())
