import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from forum_api.config import CORS_ORIGINS, LOG_LEVEL
from forum_api.database import Base, engine

# models must be imported so their tables are registered on Base.metadata
from forum_api.models import favorite_model, forum_model, user_model  # noqa: F401
from forum_api.routes import auth, category_routes, favorite_routes, reply_routes, thread_routes

# Rate limiting setup
from forum_api.limiter import limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Forum API")

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please slow down."}
    )


# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers; fixed prefixes first, the /{category_slug}/{thread_slug} catch-alls last
app.include_router(auth.router, prefix="/api/auth")
app.include_router(category_routes.router, prefix="/api")
app.include_router(reply_routes.router, prefix="/api")
app.include_router(favorite_routes.router, prefix="/api")
app.include_router(thread_routes.router, prefix="/api")


# Run DB init on startup
@app.on_event("startup")
async def on_startup():
    # Tiny retry so a momentary DB disconnect doesn't crash the app.
    for attempt in range(2):
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("database schema ready")
            break  # success
        except Exception as e:
            if attempt == 0:
                logger.warning("DB init failed, retrying once: %r", e)
                await asyncio.sleep(0.5)
            else:
                # Tables should already exist from previous runs.
                logger.error("Skipping DB init due to error: %r", e)
