"""
Response helpers for versioned file resources.
"""

from __future__ import annotations

import mimetypes
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from fastapi import Request, Response
from fastapi.responses import FileResponse, PlainTextResponse
from pydantic import BaseModel, Field

from auth.schemas import User

from .db import Transaction
from .errors import ApiError, ErrorCode
from .params import is_link_requested

RESOURCE_VERSION_HEADER = "X-Ign-Resource-Version"


class FileNode(BaseModel):
    name: str
    path: str
    children: list[FileNode] = Field(default_factory=list)


class FileTree(BaseModel):
    name: str
    owner: str
    version: int
    file_tree: list[FileNode] = Field(default_factory=list)


@dataclass(frozen=True)
class FileContent:
    data: bytes
    version: int


@dataclass(frozen=True)
class ZipDownload:
    resource: Any
    uuid: str
    version: int
    # Local path of the archive, or a URL when storage is remote.
    location: str


class FileService(Protocol):
    async def get_file(
        self,
        tx: Transaction,
        owner: str,
        name: str,
        path: str,
        version: str,
        user: User | None,
    ) -> FileContent: ...


def write_resource_version_header(response: Response, version: int | str) -> None:
    response.headers[RESOURCE_VERSION_HEADER] = str(version)


def attachment(filename: str) -> str:
    return f'attachment; filename="{filename}"'


def clean_file_path(path: str) -> str:
    cleaned = posixpath.normpath("/" + (path or "")).lstrip("/")
    if not cleaned or cleaned == ".":
        raise ApiError(ErrorCode.FILE_NOT_FOUND, extra=[path])
    return cleaned


async def individual_file_download(
    files: FileService,
    tx: Transaction,
    owner: str,
    name: str,
    version: str,
    path: str,
    user: User | None,
) -> Response:
    """
    Stream one file of a resource version as an attachment.
    """
    cleaned = clean_file_path(path)
    content = await files.get_file(tx, owner, name, cleaned, version, user)
    media_type = mimetypes.guess_type(cleaned)[0] or "application/octet-stream"
    response = Response(content=content.data, media_type=media_type)
    response.headers["Content-Disposition"] = attachment(posixpath.basename(cleaned))
    write_resource_version_header(response, content.version)
    return response


def zip_filename(kind: str, uuid: str, version: int) -> str:
    return f"{kind}-{uuid}v{version}.zip"


def serve_file_or_link(request: Request, kind: str, download: ZipDownload) -> Response:
    """
    Answer a zip download: the archive location as text when `link=true`,
    otherwise the archive itself as an attachment.
    """
    if is_link_requested(request):
        response: Response = PlainTextResponse(download.location)
    else:
        path = Path(download.location)
        if not path.is_file():
            raise ApiError(ErrorCode.ZIP_NOT_AVAILABLE, extra=[download.uuid])
        response = FileResponse(path, media_type="application/zip")
        response.headers["Content-Disposition"] = attachment(
            zip_filename(kind, download.uuid, download.version)
        )
    write_resource_version_header(response, download.version)
    return response
