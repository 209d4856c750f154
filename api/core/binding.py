"""
Request body binding: form or JSON payloads into pydantic models.

Two failure kinds are reported separately:
- decoding: the payload (or one of its values) cannot be read as the
  declared type. `UNMARSHAL_JSON` for JSON bodies, `FORM_DECODE` for forms.
  Extras look like `"Field: license. Input should be a valid integer"`.
- validation: values decode but break a rule. `FORM_INVALID_VALUE` with
  `"<field>:<value>"` extras.
"""

from __future__ import annotations

import types
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin

from fastapi import Request
from pydantic import BaseModel, ValidationError
from pydantic.fields import FieldInfo
from starlette.datastructures import FormData

from .errors import ApiError, ErrorCode
from .settings import Settings
from .validators import OWNER_BLACKLIST_KEY, load_owner_blacklist

M = TypeVar("M", bound=BaseModel)

_DECODE_ERROR_TYPES = frozenset({"int_from_float", "json_invalid", "json_type"})


def _is_decode_error(error_type: str) -> bool:
    return (
        error_type in _DECODE_ERROR_TYPES
        or error_type.endswith("_type")
        or error_type.endswith("_parsing")
    )


def _field_name(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "body"


def _error_value(err: Any) -> Any:
    if err["type"] == "missing":
        return ""
    return err.get("input", "")


def _is_list_field(field: FieldInfo) -> bool:
    annotation = field.annotation
    if get_origin(annotation) in (Union, types.UnionType):
        candidates = get_args(annotation)
    else:
        candidates = (annotation,)
    for candidate in candidates:
        if get_origin(candidate) is Annotated:
            candidate = get_args(candidate)[0]
        if candidate in (list, tuple, set) or get_origin(candidate) in (list, tuple, set):
            return True
    return False


class Binder:
    def __init__(self, owner_blacklist: frozenset[str] = frozenset()) -> None:
        self._context = {OWNER_BLACKLIST_KEY: owner_blacklist}

    @classmethod
    def from_settings(cls, settings: Settings) -> "Binder":
        return cls(owner_blacklist=load_owner_blacklist(settings.owner_blacklist_path))

    async def parse_struct(self, model: type[M], request: Request, *, is_form: bool) -> M:
        """
        Read the request body into `model` and validate it.
        """
        if is_form:
            form = await request.form()
            return self.bind_form(model, form)
        return await self.parse_json(model, request)

    async def parse_json(self, model: type[M], request: Request) -> M:
        try:
            data = await request.json()
        except ValueError as exc:
            raise ApiError(ErrorCode.UNMARSHAL_JSON, extra=[str(exc)], base=exc) from exc
        return self.validate_struct(model, data, decode_code=ErrorCode.UNMARSHAL_JSON)

    def bind_form(self, model: type[M], form: FormData) -> M:
        # Upload parts are never bound; they are staged separately.
        data: dict[str, Any] = {}
        for name, field in model.model_fields.items():
            key = field.alias or name
            values = [value for value in form.getlist(key) if isinstance(value, str)]
            if not values:
                continue
            data[key] = values if _is_list_field(field) else values[0]
        return self.validate_struct(model, data, decode_code=ErrorCode.FORM_DECODE)

    def validate_struct(
        self,
        model: type[M],
        data: Any,
        *,
        decode_code: ErrorCode = ErrorCode.UNMARSHAL_JSON,
    ) -> M:
        try:
            return model.model_validate(data, context=self._context)
        except ValidationError as exc:
            raise self._translate(exc, decode_code) from exc

    @staticmethod
    def _translate(exc: ValidationError, decode_code: ErrorCode) -> ApiError:
        errors = exc.errors(include_url=False)
        decode = [err for err in errors if _is_decode_error(err["type"])]
        if decode:
            extra = [f"Field: {_field_name(err['loc'])}. {err['msg']}" for err in decode]
            return ApiError(decode_code, extra=extra, base=exc)
        extra = [f"{_field_name(err['loc'])}:{_error_value(err)}" for err in errors]
        return ApiError(ErrorCode.FORM_INVALID_VALUE, extra=extra, base=exc)


def get_binder(request: Request) -> Binder:
    return request.app.state.binder
