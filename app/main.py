import time
import logging
from dotenv import load_dotenv

# Load environment variables from .env file before settings are read
load_dotenv()

from fastapi import FastAPI, Request
from app.core.config import settings
from app.core.logging import setup_logging, request_id_ctx
from app.core.errors import register_exception_handlers
from app.core.db import init_models
from app.api.router import api_router


setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)
register_exception_handlers(app)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = (time.time() - start_time) * 1000
    formatted_process_time = f"{process_time:.2f}ms"

    logger.info(
        f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {formatted_process_time}"
    )

    return response

# registered last so it runs first and the request id covers the access log line
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id", "-")
    request_id_ctx.set(rid)
    response = await call_next(request)
    return response


app.include_router(api_router, prefix=settings.API_PREFIX)

@app.on_event("startup")
async def on_startup():
    await init_models()
    logger.info(f"{settings.APP_NAME} started (env={settings.ENV}, delivery={settings.DELIVERY_PROVIDER})")
