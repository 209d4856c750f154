"""
Multipart upload staging.

Clients upload a folder as many `file` (or `file[]`) parts whose filenames
carry the relative path, e.g. `box/model.sdf` and `box/meshes/box.dae`.
`populate_dir` writes those parts under a destination directory, keeping the
relative layout and optionally dropping a top-level folder shared by every
part.

The stager never deletes what it wrote; the caller owns the directory. Use
`staged_upload` to get a temporary directory that is removed on exit.
"""

from __future__ import annotations

import json
import logging
import posixpath
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Sequence

from fastapi import Request
from starlette.datastructures import FormData, UploadFile

from .errors import ApiError, ErrorCode
from .settings import Settings

logger = logging.getLogger(__name__)

FORBIDDEN_NAMES = frozenset({".git", ".gitconfig", ".gitignore", ".hg", ".hgignore", ".hgrc", ".hgtags"})

CHUNK_SIZE = 1024 * 1024  # 1 MiB


def read_form(request: Request, settings: Settings) -> Any:
    """
    Parse the request form; usable as `async with read_form(...) as form`,
    which closes the spooled upload files on exit.
    """
    return request.form(max_files=settings.max_form_files, max_fields=settings.max_form_files)


def get_request_files(form: FormData) -> list[UploadFile]:
    files = [part for part in form.getlist("file") if isinstance(part, UploadFile)]
    if not files:
        files = [part for part in form.getlist("file[]") if isinstance(part, UploadFile)]
    return files


def _segments(name: str) -> list[str]:
    return [segment for segment in name.replace("\\", "/").split("/") if segment]


def outer_dir(names: Sequence[str]) -> str | None:
    """
    Return the top-level folder shared by every name (with its trailing
    slash, and a leading slash if the names have one), or None.
    """
    if not names or "/" not in names[0].lstrip("/"):
        return None
    first = names[0]
    lead = "/" if first.startswith("/") else ""
    prefix = lead + first.lstrip("/").split("/", 1)[0] + "/"
    if all(name.startswith(prefix) for name in names):
        return prefix
    return None


def check_filename(name: str) -> None:
    segments = _segments(name)
    forbidden = [segment for segment in segments if segment in FORBIDDEN_NAMES]
    if forbidden:
        raise ApiError(
            ErrorCode.FORM_INVALID_VALUE,
            extra=[f"File name [{name}] contains a forbidden entry: {forbidden[0]}"],
        )
    if ".." in segments:
        raise ApiError(
            ErrorCode.FORM_INVALID_VALUE,
            extra=[f"File name [{name}] must not reference parent folders"],
        )


async def _copy_upload(upload: UploadFile, target: Path, max_bytes: int) -> None:
    written = 0
    try:
        with open(target, "xb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise ApiError(
                        ErrorCode.FORM_FILE_TOO_LARGE,
                        extra=[f"File [{upload.filename}] is larger than {max_bytes} bytes"],
                    )
                out.write(chunk)
    except FileExistsError as exc:
        raise ApiError(ErrorCode.FORM_DUPLICATE_FILE, extra=[str(upload.filename)], base=exc) from exc
    except OSError as exc:
        raise ApiError(ErrorCode.CREATING_FILE, extra=[str(upload.filename)], base=exc) from exc


async def populate_dir(
    files: Sequence[UploadFile],
    dirpath: Path | str,
    *,
    flatten: bool,
    max_bytes: int,
) -> Path:
    """
    Write `files` under `dirpath`.

    All names are checked before the first byte is written. With `flatten`,
    a top-level folder shared by all names is removed from each path.
    """
    named = [upload for upload in files if upload.filename]
    if not named:
        raise ApiError(ErrorCode.FORM_MISSING_FILES)

    for upload in named:
        check_filename(upload.filename or "")

    names = [upload.filename or "" for upload in named]
    strip = outer_dir(names) if flatten else None

    root = Path(dirpath)
    for upload, name in zip(named, names):
        if strip is not None:
            name = name[len(strip):]
        relative = posixpath.normpath("/".join(_segments(name)))
        target = root / relative
        if target.exists():
            raise ApiError(ErrorCode.FORM_DUPLICATE_FILE, extra=[name])
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ApiError(ErrorCode.CREATING_DIR, extra=[str(target.parent)], base=exc) from exc
        await _copy_upload(upload, target, max_bytes)

    return root


def remove_dir(path: Path | str | None) -> None:
    if not path:
        return None
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.error("Unable to remove directory %s: %s", path, exc)


@asynccontextmanager
async def staged_upload(
    form: FormData,
    *,
    prefix: str,
    flatten: bool,
    max_bytes: int,
    required: bool = True,
) -> AsyncIterator[Path | None]:
    """
    Stage the request's files into a fresh temporary directory.

    When the form has no files, raises FORM_MISSING_FILES before creating
    anything, or yields None if files are optional. The directory is removed
    when the block exits.
    """
    files = get_request_files(form)
    if not files:
        if required:
            raise ApiError(ErrorCode.FORM_MISSING_FILES)
        yield None
        return

    tmp = Path(tempfile.mkdtemp(prefix=f"{prefix}-"))
    try:
        await populate_dir(files, tmp, flatten=flatten, max_bytes=max_bytes)
        yield tmp
    finally:
        remove_dir(tmp)


def parse_metadata(form: FormData) -> list[dict[str, Any]] | None:
    """
    Decode every `metadata` form value as a `{"key": ..., "value": ...}`
    JSON object. Entries that do not decode are skipped.
    """
    values = [value for value in form.getlist("metadata") if isinstance(value, str)]
    if not values:
        return None
    metadata = []
    for raw in values:
        try:
            item = json.loads(raw)
        except ValueError:
            logger.debug("Skipping undecodable metadata entry: %r", raw)
            continue
        if isinstance(item, dict) and "key" in item:
            metadata.append({"key": str(item["key"]), "value": str(item.get("value", ""))})
    return metadata
