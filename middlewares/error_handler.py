import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def _now_iso():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _error_body(code: str, message: str) -> dict:
    # 라우터의 {"success": False, "message": ...} 형식과 맞춤
    return {
        "success": False,
        "message": message,
        "error": {"code": code, "message": message},
        "generated_at": _now_iso(),
    }


def add_error_handlers(app: FastAPI):
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("invalid request %s %s: %s", request.method, request.url.path, exc.errors())
        body = _error_body("VALIDATION_ERROR", "Invalid request")
        body["error"]["details"] = jsonable_errors(exc)
        return JSONResponse(status_code=422, content=body)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        body = _error_body("INTERNAL_ERROR", "Internal server error")
        body["error"]["message"] = str(exc)
        return JSONResponse(status_code=500, content=body)


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
