import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from .logging import setup_logging
from .errors import InsightsError
from .api.routes import router as api_router

setup_logging()
log = structlog.get_logger()

app = FastAPI(title="stock-insights-service")
app.include_router(api_router)

@app.exception_handler(InsightsError)
async def insights_error_handler(request: Request, exc: InsightsError):
    log.warning(
        "request_failed",
        path=request.url.path,
        status=exc.status_code,
        error=exc.message,
        details=exc.details,
    )
    return JSONResponse(exc.to_body(), status_code=exc.status_code)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse({"error": "Invalid request", "details": details}, status_code=400)

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("request_unhandled_error", path=request.url.path)
    return JSONResponse({"error": "Internal server error", "details": str(exc)}, status_code=500)
