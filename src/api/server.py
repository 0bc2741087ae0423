"""FastAPI server exposing the USDA catalog to the app."""

from functools import lru_cache
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from src.catalog.client import CatalogClient, SearchOptions, DEFAULT_DATA_TYPES
from src.catalog.config import CatalogConfig


app = FastAPI(title="FoodData Catalog API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Local development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class BatchRequest(BaseModel):
    fdc_ids: List[int] = Field(default_factory=list, max_length=20)


class FoodDetailResponse(BaseModel):
    food: Dict[str, Any]
    nutrient_count: int
    max_nutrient_count: int
    serving_grams: float
    nutrients: Dict[str, float]


@lru_cache(maxsize=1)
def get_catalog_client() -> CatalogClient:
    """Build the process-wide client once, from environment variables."""
    return CatalogClient(CatalogConfig.from_env())


@app.get("/api/foods/search")
def search_foods(
    query: str,
    data_type: Optional[List[str]] = Query(default=None),
    page_size: int = 10,
    page_number: int = 1,
    client: CatalogClient = Depends(get_catalog_client),
) -> List[Dict[str, Any]]:
    try:
        options = SearchOptions(
            data_types=tuple(data_type or DEFAULT_DATA_TYPES),
            page_size=page_size,
            page_number=page_number,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return [
        {**food, "nutrientCount": client.count_available_nutrients(food)}
        for food in client.search(query, options)
    ]


@app.get("/api/foods/{fdc_id}", response_model=FoodDetailResponse)
def get_food(
    fdc_id: int,
    serving_grams: float = Query(default=100.0, ge=0),
    client: CatalogClient = Depends(get_catalog_client),
) -> FoodDetailResponse:
    detail = client.get_detail(fdc_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Food {fdc_id} not available")

    per_100g = client.map_nutrients(detail.get("foodNutrients"))
    return FoodDetailResponse(
        food=detail,
        nutrient_count=client.count_available_nutrients(detail),
        max_nutrient_count=client.get_max_nutrient_count(),
        serving_grams=serving_grams,
        nutrients=client.scale_nutrients_to_serving(per_100g, serving_grams),
    )


@app.post("/api/foods/batch")
def get_foods(
    request: BatchRequest,
    client: CatalogClient = Depends(get_catalog_client),
) -> List[Dict[str, Any]]:
    return client.get_detail_batch(request.fdc_ids)


@app.get("/api/nutrients/max-count")
def max_nutrient_count(client: CatalogClient = Depends(get_catalog_client)) -> Dict[str, int]:
    return {"max_nutrient_count": client.get_max_nutrient_count()}


@app.post("/api/cache/clear")
def clear_cache(client: CatalogClient = Depends(get_catalog_client)) -> Dict[str, str]:
    client.clear_cache()
    return {"status": "cleared"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
