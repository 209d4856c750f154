"""
Tests for multipart staging: folder layout, name checks and limits.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from starlette.datastructures import FormData, UploadFile

from core.errors import ApiError, ErrorCode
from core.uploads import check_filename, outer_dir, parse_metadata, populate_dir, staged_upload

pytestmark = pytest.mark.anyio

MAX = 1024


def upload(name: str, data: bytes = b"x") -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=name)


def listing(root: Path) -> list[str]:
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


def test_outer_dir_shared_prefix():
    assert outer_dir(["box/model.sdf", "box/meshes/box.dae"]) == "box/"
    assert outer_dir(["/box/model.sdf", "/box/model.config"]) == "/box/"


def test_outer_dir_none_when_not_shared():
    assert outer_dir(["box/model.sdf", "other/model.config"]) is None
    assert outer_dir(["model.sdf", "box/model.config"]) is None
    assert outer_dir([]) is None


def test_check_filename_rejects_vcs_entries():
    with pytest.raises(ApiError) as exc:
        check_filename("box/.git/config")
    assert exc.value.code is ErrorCode.FORM_INVALID_VALUE


def test_check_filename_allows_lookalikes():
    check_filename("box/my.gitignore.txt")
    check_filename("box/gitstuff/a.sdf")


async def test_flatten_strips_shared_folder(tmp_path):
    files = [upload("box/model.sdf"), upload("box/meshes/box.dae")]
    await populate_dir(files, tmp_path, flatten=True, max_bytes=MAX)
    assert listing(tmp_path) == ["meshes/box.dae", "model.sdf"]


async def test_without_flatten_keeps_layout(tmp_path):
    files = [upload("box/model.sdf"), upload("box/meshes/box.dae")]
    await populate_dir(files, tmp_path, flatten=False, max_bytes=MAX)
    assert listing(tmp_path) == ["box/meshes/box.dae", "box/model.sdf"]


async def test_flatten_with_mixed_roots_keeps_layout(tmp_path):
    files = [upload("box/model.sdf"), upload("thumbnails/1.png")]
    await populate_dir(files, tmp_path, flatten=True, max_bytes=MAX)
    assert listing(tmp_path) == ["box/model.sdf", "thumbnails/1.png"]


async def test_file_contents_are_copied(tmp_path):
    await populate_dir([upload("model.sdf", b"<sdf/>")], tmp_path, flatten=True, max_bytes=MAX)
    assert (tmp_path / "model.sdf").read_bytes() == b"<sdf/>"


async def test_forbidden_name_writes_nothing(tmp_path):
    files = [upload("box/model.sdf"), upload("box/.hgignore")]
    with pytest.raises(ApiError) as exc:
        await populate_dir(files, tmp_path, flatten=True, max_bytes=MAX)
    assert exc.value.code is ErrorCode.FORM_INVALID_VALUE
    assert listing(tmp_path) == []


async def test_parent_reference_is_rejected(tmp_path):
    with pytest.raises(ApiError) as exc:
        await populate_dir([upload("../escape.sdf")], tmp_path / "dest", flatten=False, max_bytes=MAX)
    assert exc.value.code is ErrorCode.FORM_INVALID_VALUE
    assert not (tmp_path / "escape.sdf").exists()


async def test_no_files(tmp_path):
    with pytest.raises(ApiError) as exc:
        await populate_dir([], tmp_path, flatten=True, max_bytes=MAX)
    assert exc.value.code is ErrorCode.FORM_MISSING_FILES


async def test_duplicate_file(tmp_path):
    files = [upload("box/model.sdf"), upload("box/model.sdf")]
    with pytest.raises(ApiError) as exc:
        await populate_dir(files, tmp_path, flatten=True, max_bytes=MAX)
    assert exc.value.code is ErrorCode.FORM_DUPLICATE_FILE


async def test_file_too_large(tmp_path):
    with pytest.raises(ApiError) as exc:
        await populate_dir([upload("big.bin", b"0" * (MAX + 1))], tmp_path, flatten=True, max_bytes=MAX)
    assert exc.value.code is ErrorCode.FORM_FILE_TOO_LARGE
    assert exc.value.status_code == 413


async def test_staged_upload_removes_directory():
    form = FormData([("file", upload("box/model.sdf"))])
    async with staged_upload(form, prefix="model", flatten=True, max_bytes=MAX) as staged:
        assert staged is not None
        assert listing(staged) == ["model.sdf"]
    assert not staged.exists()


async def test_staged_upload_removes_directory_on_error():
    form = FormData([("file", upload("box/model.sdf"))])
    with pytest.raises(RuntimeError):
        async with staged_upload(form, prefix="model", flatten=True, max_bytes=MAX) as staged:
            raise RuntimeError("service failed")
    assert not staged.exists()


async def test_staged_upload_optional_files():
    form = FormData([("description", "new")])
    async with staged_upload(form, prefix="model", flatten=True, max_bytes=MAX, required=False) as staged:
        assert staged is None


async def test_staged_upload_required_files():
    with pytest.raises(ApiError) as exc:
        async with staged_upload(FormData([]), prefix="model", flatten=True, max_bytes=MAX):
            pass
    assert exc.value.code is ErrorCode.FORM_MISSING_FILES


async def test_staged_upload_accepts_array_field_name():
    form = FormData([("file[]", upload("a.sdf")), ("file[]", upload("b.sdf"))])
    async with staged_upload(form, prefix="world", flatten=True, max_bytes=MAX) as staged:
        assert listing(staged) == ["a.sdf", "b.sdf"]


def test_parse_metadata():
    form = FormData([("metadata", '{"key": "color", "value": "red"}'), ("metadata", "not json")])
    assert parse_metadata(form) == [{"key": "color", "value": "red"}]
    assert parse_metadata(FormData([])) is None
