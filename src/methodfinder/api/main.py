"""
HTTP surface for the recommendation engine.

Endpoints:
- GET  /health
- GET  /v1/categories
- GET  /v1/methods
- POST /v1/recommendations   body: {"selection": {"sem_level": ["Individual"]}}

The engine is built once (from the configured catalog and rule files) and
shared across requests; each request gets its own selection value.

Run with:
    uvicorn methodfinder.api.main:app
"""

import time
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from methodfinder.config.manager import get_config_manager
from methodfinder.config.rules import RuleConfigError
from methodfinder.services.method_catalog import CatalogLoadError
from methodfinder.services.recommendation import RecommendationEngine, create_recommendation_engine
from methodfinder.utils.logger import log


class RecommendationRequest(BaseModel):
    """Filter selection for one recommendation run."""
    model_config = ConfigDict(populate_by_name=True)

    selection: Dict[str, List[str]] = Field(default_factory=dict)
    include_unlisted: bool = Field(False, alias="includeUnlisted")


def _build_engine_from_config() -> RecommendationEngine:
    config = get_config_manager()
    return create_recommendation_engine(
        catalog_path=config.get_catalog_path(),
        rules_path=config.get_rules_path(),
    )


def create_app(engine: Optional[RecommendationEngine] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        engine: Prebuilt engine. When omitted the engine is built from the
                config manager's paths on first use.
    """
    app = FastAPI(
        title="Method Finder",
        description="Recommends research-measurement methods for a filter selection.",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.engine = engine

    def get_engine(request: Request) -> RecommendationEngine:
        """Return the shared engine, building it on first use."""
        if request.app.state.engine is None:
            try:
                request.app.state.engine = _build_engine_from_config()
            except (CatalogLoadError, RuleConfigError) as e:
                log.warning(f"Recommendation engine unavailable: {e}")
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail=f"Catalog not available: {e}",
                )
        return request.app.state.engine

    @app.get("/health", tags=["System"])
    async def health_check():
        """Verify API is alive."""
        return {"status": "ok", "timestamp": time.time()}

    @app.get("/v1/categories", tags=["Catalog"])
    async def list_categories(engine: RecommendationEngine = Depends(get_engine)):
        """Filterable categories and their options."""
        return [category.to_dict() for category in engine.attribute_model.categories]

    @app.get("/v1/methods", tags=["Catalog"])
    async def list_methods(engine: RecommendationEngine = Depends(get_engine)):
        """All catalog methods in catalog order."""
        return [method.to_dict() for method in engine.catalog.iter_methods()]

    @app.post("/v1/recommendations", tags=["Recommendation"])
    async def recommend(
        body: RecommendationRequest,
        engine: RecommendationEngine = Depends(get_engine),
    ):
        """Tier every catalog method for the given selection."""
        tiers = engine.recommend(body.selection)
        return tiers.to_dict(include_unlisted=body.include_unlisted)

    return app


app = create_app()
