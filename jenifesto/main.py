from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jenifesto.api.deps import get_runtime
from jenifesto.api.routes import page
from jenifesto.config import settings
from jenifesto.services import logger as log_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: bring back the last page so a reopened panel renders immediately
    page_state = await get_runtime().sessions.restore()
    log_service.log_event(
        event_type="startup",
        message="Session state restored" if page_state else "No stored session state",
    )
    yield


app = FastAPI(
    title="Jenifesto",
    description="Cross-source identity lookups for encyclopedia pages",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(page.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "jenifesto"}
