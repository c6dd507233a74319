import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger

from zoe.api.admin.coaching import router as admin_coaching_router
from zoe.api.admin.content import router as admin_content_router
from zoe.api.auth import router as auth_router
from zoe.api.coaching import router as coaching_router
from zoe.api.community import router as community_router
from zoe.api.me import router as me_router
from zoe.api.profile import router as profile_router
from zoe.config.settings import settings
from zoe.core.logger import setup_logger
from zoe.db.models import Base
from zoe.db.session import check_database_connection, get_engine
from zoe.media.storage import PUBLIC_PREFIX
from zoe.services.llm.model import has_ai_key

# Initialize logger
setup_logger(level=settings.log_level, log_file=settings.log_file or None)

if not has_ai_key():
    logger.warning("Neither ANTHROPIC_API_KEY nor OPENAI_API_KEY is set. AI plan generation is disabled.")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Verify the database and make sure tables exist before serving."""
    check_database_connection()
    logger.info("Ensuring database tables exist")
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables verified")

    # Yield control to FastAPI (use await to satisfy async requirement)
    await asyncio.sleep(0)
    yield

    logger.info("Shutting down")


app = FastAPI(title="Stronger With Zoe", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(admin_coaching_router)
app.include_router(admin_content_router)
app.include_router(coaching_router)
app.include_router(community_router)
app.include_router(profile_router)
app.include_router(me_router)

app.mount(PUBLIC_PREFIX, StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

logger.info("FastAPI application initialized")


@app.get("/health")
def health():
    return {"status": "ok", "ai_configured": has_ai_key()}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response
