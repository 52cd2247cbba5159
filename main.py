"""Wealth Coach - FastAPI Application Entry Point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wealth_coach import __version__
from wealth_coach.api import router
from wealth_coach.config import settings

app = FastAPI(
    title="Wealth Coach",
    description="Personal financial advisory engine: AI advice, health score, goals and insights",
    version=__version__,
)

# CORS middleware for cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "wealth-coach"}


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": "Wealth Coach",
        "version": __version__,
        "description": "Personal financial advisory engine",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
