"""Read-only HTTP view of the current analysis."""

from __future__ import annotations

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status

from .analysis import AnalysisResult, ChunkStats
from .classify import SeverityTier, classify
from .grid import ChunkKey
from .models import ChunkListResponse, ChunkResponse
from .settings import Settings
from .store import AnalysisStore


def create_app(store: AnalysisStore, settings: Settings) -> FastAPI:
    app = FastAPI(title="Chunk Marker")
    app.state.store = store
    app.state.settings = settings

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/chunks", response_model=ChunkListResponse)
    async def api_chunks(
        over: bool = Query(default=False),
        result: AnalysisResult = Depends(require_analysis),
        settings: Settings = Depends(get_settings),
    ):
        chunks = [chunk_response(key, stats, settings) for key, stats in result.sorted_items()]
        if over:
            chunks = [chunk for chunk in chunks if chunk.tier != SeverityTier.OK.value]
        return ChunkListResponse(
            cell_size=settings.cell_size,
            physics_budget=settings.physics_budget,
            component_budget=settings.component_budget,
            total_objects=result.total_objects,
            chunks=chunks,
        )

    @app.get("/api/chunks/{x}/{y}/{z}", response_model=ChunkResponse)
    async def api_chunk(
        x: int,
        y: int,
        z: int,
        result: AnalysisResult = Depends(require_analysis),
        settings: Settings = Depends(get_settings),
    ):
        key = (x, y, z)
        stats = result.get(key)
        if stats is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chunk has no objects")
        return chunk_response(key, stats, settings)

    return app


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def require_analysis(request: Request) -> AnalysisResult:
    result = await request.app.state.store.read()
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="The save has not been analyzed")
    return result


def chunk_response(key: ChunkKey, stats: ChunkStats, settings: Settings) -> ChunkResponse:
    return ChunkResponse(
        key=key,
        center=settings.grid.chunk_center(key),
        object_count=stats.object_count,
        physics_cost=stats.physics_cost,
        component_cost=stats.component_cost,
        tier=classify(stats, settings.budgets).value,
    )
