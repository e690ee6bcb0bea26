"""
JSON envelope shared by every endpoint.

    success: {"ok": true, "data": ...}
    failure: {"ok": false, "error": "<message>"}
"""
import uuid
from datetime import datetime

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


def generate_correlation_id() -> str:
    """Short id tying together the log lines of one request."""
    return f"{datetime.now().strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:8]}"


def _encode(data):
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [_encode(item) for item in data]
    if isinstance(data, dict):
        return {key: _encode(value) for key, value in data.items()}
    return jsonable_encoder(data)


def api_ok(data=None, status_code: int = 200, **extra) -> JSONResponse:
    body = {"ok": True}
    if data is not None:
        body["data"] = _encode(data)
    body.update(_encode(extra))
    return JSONResponse(body, status_code=status_code)


def api_error(message: str, status_code: int = 400, headers: dict | None = None) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=status_code, headers=headers)
