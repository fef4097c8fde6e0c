import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ot_trace.api.v1.routes import trace, websocket
from ot_trace.core.config import get_settings
from ot_trace.core.exceptions import OTTraceError
from ot_trace.core.logging import configure_logging
from ot_trace.db import models
from ot_trace.db.session import engine

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="ot-trace")


@app.exception_handler(OTTraceError)
async def ot_trace_error_handler(request: Request, exc: OTTraceError):
    logger.warning("Cannot render %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/")
async def read_root():
    return {"message": "ot-trace is running"}


models.Base.metadata.create_all(bind=engine)
app.include_router(trace.router, prefix=settings.api_prefix, tags=["traces"])
app.include_router(websocket.router, tags=["websocket"])
