import logging
import traceback
from contextlib import asynccontextmanager

import requests
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from errors import ConfigError, PromoForgeError, RenderTimeoutError, TransportError, UpstreamError
from routers import media, pipeline, render
from shotstack import ShotstackClient
from storage import BlobStorage
from voiceover import VoiceoverService

# --------------------------------------------------------------------------
# --- Configuration & Setup ---
# --------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    session = requests.Session()
    app.state.http_session = session
    app.state.storage = BlobStorage(config.BLOB_READ_WRITE_TOKEN, session)
    app.state.voiceover = VoiceoverService(config.ELEVENLABS_API_KEY, session, app.state.storage)
    try:
        shotstack_config = config.get_shotstack_config()
        app.state.shotstack = ShotstackClient(shotstack_config, session)
        logging.info(f"✅ Shotstack host {shotstack_config.host}, key {config.mask_for_log(shotstack_config.api_key)}")
    except ConfigError as e:
        # Render routes and /health report this until it is fixed.
        app.state.shotstack = None
        logging.error(f"❌ Shotstack is misconfigured: {e.message}")
    yield
    session.close()


app = FastAPI(
    title="PromoForge",
    description="Turns a landing page into a short promotional video.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --------------------------------------------------------------------------
# --- Error Handling ---
# --------------------------------------------------------------------------


async def _promoforge_error_handler(request: Request, exc: PromoForgeError):
    content = {"success": False, "error": exc.message}
    if exc.details is not None and (config.VERBOSE_ERRORS or not isinstance(exc, TransportError)):
        content["details"] = jsonable_encoder(exc.details)
    if isinstance(exc, UpstreamError) and exc.status_code is not None:
        content["errorFromProvider"] = exc.body
        # A 2xx here means the payload was unusable, not that the provider errored.
        if not 200 <= exc.status_code < 300:
            content["status"] = exc.status_code
    if isinstance(exc, RenderTimeoutError):
        content["renderId"] = exc.render_id
    return JSONResponse(status_code=exc.http_status, content=content)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Validation failed", "details": jsonable_encoder(exc.errors())},
    )


async def _unexpected_error_handler(request: Request, exc: Exception):
    logging.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    content = {"success": False, "error": "Internal server error"}
    if config.VERBOSE_ERRORS:
        content["details"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=content)


app.add_exception_handler(PromoForgeError, _promoforge_error_handler)
app.add_exception_handler(RequestValidationError, _validation_error_handler)
app.add_exception_handler(Exception, _unexpected_error_handler)

app.include_router(render.router)
app.include_router(media.router)
app.include_router(pipeline.router)


@app.get("/")
def read_root():
    return {"message": "PromoForge API"}
