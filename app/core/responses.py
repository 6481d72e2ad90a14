"""Newline-terminated JSON responses with an optional ``?pretty`` flag."""

import json
from typing import Any, Mapping, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

FALSY_FLAGS = {"0", "false", "no"}


def is_pretty(request: Request) -> bool:
    if "pretty" not in request.query_params:
        return False
    return request.query_params.get("pretty", "").strip().lower() not in FALSY_FLAGS


class PrettyJSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"

    def __init__(self, content: Any, status_code: int = 200, headers: Optional[Mapping[str, str]] = None, pretty: bool = False):
        self.pretty = pretty
        super().__init__(content=content, status_code=status_code, headers=headers)

    def render(self, content: Any) -> bytes:
        if self.pretty:
            text = json.dumps(content, ensure_ascii=False, indent=2)
        else:
            text = json.dumps(content, ensure_ascii=False, separators=(",", ":"))
        return (text + "\n").encode("utf-8")


def json_response(
    request: Request,
    payload: Any,
    status_code: int = 200,
    headers: Optional[Mapping[str, str]] = None,
) -> PrettyJSONResponse:
    return PrettyJSONResponse(
        jsonable_encoder(payload),
        status_code=status_code,
        headers=headers,
        pretty=is_pretty(request),
    )
