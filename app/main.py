"""FastAPI application entrypoint"""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.router import api_router
from app.config import settings
from app.dependencies import get_optional_search_engine, init_search_engine


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_search_engine()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health(search_engine=Depends(get_optional_search_engine)):
    return {
        "status": "ok" if search_engine is not None else "degraded",
        "search_engine": search_engine is not None,
        "version": settings.VERSION,
    }


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, reload=settings.DEBUG)
