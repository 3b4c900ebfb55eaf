import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ofx_ingest.api.endpoints import ofx
from ofx_ingest.api.state import get_settings
from ofx_ingest.common.logging_config import get_logger, get_request_id, set_request_id, setup_logging

settings = get_settings()
setup_logging(settings.log_level_value, settings.log_file)
logger = get_logger("api.main")

app = FastAPI(title="OFX Ingest API", version="1.0.0")


REQUEST_ID_HEADER = "X-Request-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


# Binds a request id (the caller's X-Request-ID, or a new one) and logs each upload round trip
@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    set_request_id(request.headers.get(REQUEST_ID_HEADER) or None)
    request_id = get_request_id()
    started = time.perf_counter()

    logger.info(
        f"{request.method} {request.url.path} received",
        method=request.method,
        path=request.url.path,
        client=request.client.host if request.client else "unknown",
    )

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} crashed: {e}", elapsed_ms=_elapsed_ms(started),
                     exc_info=True)
        raise

    logger.info(
        f"{request.method} {request.url.path} answered {response.status_code}",
        status_code=response.status_code,
        elapsed_ms=_elapsed_ms(started),
    )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ofx.router, prefix="/api/ofx", tags=["OFX"])


@app.get("/api/health")
def health_check():
    return {"status": "ok", "app": "OFX Ingest"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8010)
