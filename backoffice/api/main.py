from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backoffice.api.deps import get_entity_kinds
from backoffice.api.routers import records
from backoffice.common.logger import configure_logging
from backoffice.core.config import get_settings

settings = get_settings()

configure_logging(settings)

app = FastAPI(
    title=settings.app_name,
    description="Back office records with two-tier approval workflow",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One router per approvable entity kind
for kind in get_entity_kinds().values():
    app.include_router(records.build_router(kind), prefix="/api")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else None,
        "resources": sorted(kind.resource for kind in get_entity_kinds().values()),
    }
