import logging
import uuid

import httpx
from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from larder_recipes.app.api.deps import get_normalizer
from larder_recipes.app.api.routes import api_router
from larder_recipes.app.core.config import get_settings
from larder_recipes.app.core.errors import NormalizationFailed
from larder_recipes.app.services.llm_client import (
    IngredientNormalizer,
    get_ingredient_system_instruction,
)

logger = logging.getLogger(__name__)

AI_HEALTH_SAMPLE = ["1 cup all-purpose flour", "2 cloves garlic, minced"]


async def validation_exception_handler(request, exc: RequestValidationError):
    request_id = str(uuid.uuid4())
    details = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", []) if part is not None)
        msg = err.get("msg", "Invalid value")
        details.append({"field": loc or None, "message": msg})
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "validation_error",
            "message": "Invalid request payload.",
            "details": details,
            "request_id": request_id,
        },
    )


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    app = FastAPI(title="Larder Recipes", version="0.1.0")
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(api_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/ai-health")
    async def ai_health(normalizer: IngredientNormalizer = Depends(get_normalizer)):
        try:
            results = await normalizer.normalize(AI_HEALTH_SAMPLE, get_ingredient_system_instruction())
            if len(results) != len(AI_HEALTH_SAMPLE):
                raise NormalizationFailed(f"expected {len(AI_HEALTH_SAMPLE)} results, got {len(results)}")
        except (NormalizationFailed, httpx.HTTPError) as exc:
            logger.warning("AI health check failed: %s", exc)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "error", "error": str(exc)},
            )
        return {"status": "ok"}

    return app


app = create_app()
