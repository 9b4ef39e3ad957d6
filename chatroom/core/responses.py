"""
JSON response helpers. Polling clients must always see fresh state, so nothing is cacheable.
"""
from typing import Any

from starlette.responses import JSONResponse

from chatroom.core.exceptions import ChatError

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}


def json_response(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(data, status_code=status_code, headers=NO_STORE_HEADERS)


def error_response(exc: ChatError) -> JSONResponse:
    return json_response({"error": exc.message, "code": exc.code}, status_code=exc.status_code)
