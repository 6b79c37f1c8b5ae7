import json
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from app.config import settings
from app.routers import appinfo, files, monitor, orders, products, users
from app.services.middlewares import MiddlewareCode
from app.utils.errors import ApiError
from app.utils.logger import RequestJournal, logger

REQUEST_VALIDATION_CODE = "request-001"

app = FastAPI(title="Basic Shop API", version=settings.APP_VERSION)

journal = RequestJournal(settings.LOG_DIR)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
    max_age=3600,
)


def _decode_body(raw: bytes, content_type: str):
    if not raw:
        return None
    if "application/json" not in content_type:
        return f"<{len(raw)} bytes>"
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


# Request logging middleware with request ID
@app.middleware("http")
async def request_logger(request: Request, call_next):
    rid = uuid.uuid4().hex[:8]
    request.state.rid = rid
    logger.info("→ %s %s rid=%s", request.method, request.url.path, rid)
    body = _decode_body(await request.body(), request.headers.get("content-type", ""))
    try:
        resp = await call_next(request)
    except Exception as e:
        logger.exception("Unhandled error rid=%s: %s", rid, str(e))
        resp = JSONResponse({"traceId": rid, "msg": "internal server error"}, status_code=500)

    chunks = [chunk async for chunk in resp.body_iterator] if hasattr(resp, "body_iterator") else [resp.body]
    raw = b"".join(chunks)
    logger.info("← %s status=%s rid=%s", request.url.path, resp.status_code, rid)
    await run_in_threadpool(
        journal.record,
        ip=request.client.host if request.client else None,
        method=request.method,
        path=request.url.path,
        status_code=resp.status_code,
        query=dict(request.query_params),
        body=body,
        response=_decode_body(raw, resp.headers.get("content-type", "")),
    )

    headers = dict(resp.headers)
    headers.pop("content-length", None)
    out = Response(content=raw, status_code=resp.status_code, headers=headers, media_type=resp.media_type)
    out.headers["X-Request-ID"] = rid
    return out


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content={"traceId": exc.code, "msg": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    msg = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"traceId": REQUEST_VALIDATION_CODE, "msg": msg})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    msg = "router not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"traceId": MiddlewareCode.ROUTER_CHECK.value, "msg": msg},
    )


app.include_router(monitor.router)
app.include_router(users.router)
app.include_router(appinfo.router)
app.include_router(products.router)
app.include_router(orders.router)
app.include_router(files.router)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}")
