from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import load_cors_origins, load_settings
from .database import close_pool, init_db, init_pool


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings = load_settings()
    print(f"[Siteline] Starting server on port {settings.port}")

    # Initialize database
    await init_pool(settings.database_url)
    await init_db()
    print("[Siteline] Database ready (safety incident tables verified)")

    yield

    # Cleanup
    await close_pool()
    print("[Siteline] Server shutdown complete")


app = FastAPI(
    title="Siteline Safety API",
    description="OSHA incident intake, classification and logs for construction sites",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS - allow frontend origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=load_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and include routers
from .safety.routes import safety_router

app.include_router(safety_router, prefix="/api/safety")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "siteline-safety"}
