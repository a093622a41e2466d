import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.api.v1.endpoints import chat
from app.conversation.llm_gateway import close_text_generator
from app.db.redis_client import init_redis, close_redis

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ============================================================
# FASTAPI APP SETUP
# ============================================================
app = FastAPI(
    title="AIR Discovery - Travel Advisor API",
    description="""
    ✈️ **Conversational Travel Advisor**

    Interviews the traveler step by step and recommends a destination.

    ## Features
    * 💬 Structured chat turns with quick replies
    * 📅 Availability months resolved to travel dates
    * 💰 Per-person budget checks
    * 🔍 Flight-search parameters for the recommended route
    """,
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
)

# ============================================================
# CORS CONFIG
# ============================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================
@app.on_event("startup")
async def startup_event():
    if settings.USE_REDIS:
        await init_redis()

    logger.info(f"🚀 Application startup complete (provider={settings.LLM_PROVIDER}, redis={settings.USE_REDIS})")


@app.on_event("shutdown")
async def shutdown_event():
    await close_text_generator()

    if settings.USE_REDIS:
        await close_redis()


# ============================================================
# API ROUTERS
# ============================================================
app.include_router(chat.router, prefix=settings.API_V1_STR)


# ============================================================
# ROOT ENDPOINT
# ============================================================
@app.get("/")
def read_root():
    return {"message": "Welcome to the AIR Discovery Travel Advisor API"}
