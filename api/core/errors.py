"""
API error taxonomy and the FastAPI exception handlers that render it.

Every failure a handler can report is an `ApiError`: a stable numeric code,
the HTTP status it maps to, a short message and optional `extra` strings
(field names, offending values). Clients receive:

    {"errcode": 3004, "msg": "...", "extra": ["name:ab"]}
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Iterable

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    # Database and storage
    NO_DATABASE = (1000, 500, "Unable to connect to the database")
    DB_DELETE = (1001, 500, "Unable to remove resource from the database")
    DB_SAVE = (1002, 500, "Unable to save resource into the database")
    ID_NOT_FOUND = (1003, 404, "Resource id not found in database")
    NAME_NOT_FOUND = (1004, 404, "Resource name not found in database")
    FILE_NOT_FOUND = (1005, 404, "File not found")
    RESOURCE_EXISTS = (1006, 409, "Resource already exists")
    NON_EXISTENT_RESOURCE = (1007, 404, "Resource does not exist")
    CREATING_DIR = (1008, 500, "Unable to create a new directory")
    CREATING_FILE = (1009, 500, "Unable to create a new file")
    REPO = (1010, 500, "Unable to access the repository")
    FILE_TREE = (1011, 500, "Unable to compute the file tree")
    VERSION_NOT_FOUND = (1012, 404, "Version not found")
    ZIP_NOT_AVAILABLE = (1013, 500, "Zip file not available")

    # Request bodies
    FORM = (3000, 400, "Unable to process the form")
    FORM_MISSING_FILES = (3001, 400, "Missing files in the request form")
    FORM_DUPLICATE_FILE = (3002, 409, "Duplicate file in the request form")
    FORM_DUPLICATE_MODEL_NAME = (3003, 409, "A model with the same name already exists")
    FORM_INVALID_VALUE = (3004, 400, "Invalid value in the request")
    FORM_DUPLICATE_WORLD_NAME = (3005, 409, "A world with the same name already exists")
    FORM_DECODE = (3006, 400, "Unable to decode the request form")
    FORM_FILE_TOO_LARGE = (3007, 413, "Uploaded file is too large")
    UNMARSHAL_JSON = (3008, 400, "Unable to decode JSON payload")

    # Identity and permissions
    AUTH_NO_USER = (4000, 403, "No user associated with the provided identity")
    AUTH_JWT_INVALID = (4001, 401, "Missing or invalid JWT")
    UNAUTHORIZED = (4002, 401, "Unauthorized")
    USER_UNKNOWN = (4003, 404, "Unknown user or organization")

    # Request parameters
    ID_NOT_IN_REQUEST = (5000, 400, "ID not present in request")
    OWNER_NOT_IN_REQUEST = (5001, 400, "Owner name not present in request")
    MODEL_NOT_IN_REQUEST = (5002, 400, "Model name not present in request")
    WORLD_NOT_IN_REQUEST = (5003, 400, "World name not present in request")
    USER_NOT_IN_REQUEST = (5004, 400, "User name not present in request")
    NAME_WRONG_FORMAT = (5005, 400, "Name missing or with wrong format")
    MISSING_FIELD = (5006, 400, "Missing or invalid field in request")
    INVALID_PAGINATION_REQUEST = (5007, 400, "Invalid pagination request")
    PAGINATION_PAGE_NOT_FOUND = (5008, 404, "Page not found")

    UNEXPECTED = (150000, 500, "Unexpected error")

    def __init__(self, errcode: int, status_code: int, msg: str) -> None:
        self.errcode = errcode
        self.status_code = status_code
        self.msg = msg


class ApiError(HTTPException):
    """
    HTTP error with a stable error code.

    `base` keeps the underlying cause for logs; it is never sent to clients.
    """

    def __init__(
        self,
        code: ErrorCode,
        *,
        extra: Iterable[str] | None = None,
        base: BaseException | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=code.status_code, detail=code.msg, headers=headers)
        self.code = code
        self.extra = [str(item) for item in (extra or [])]
        self.base = base

    def to_dict(self) -> dict[str, Any]:
        return {
            "errcode": self.code.errcode,
            "msg": self.code.msg,
            "extra": self.extra,
        }

    def __str__(self) -> str:
        suffix = f" ({'; '.join(self.extra)})" if self.extra else ""
        return f"[{self.code.errcode}] {self.code.msg}{suffix}"


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc.base,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    extra = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "header")]
        extra.append(f"{'.'.join(loc)}:{err.get('input')}")
    error = ApiError(ErrorCode.FORM_INVALID_VALUE, extra=extra)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
