from pydantic import BaseModel
from typing import List, Literal
from sylvia.schemas.book import BookWithReason


class RecommendationBasis(BaseModel):
    """Which signal the catalog query was built from."""
    type: Literal["categories", "authors", "titles"]
    values: List[str]


class RecommendationSources(BaseModel):
    library: int = 0
    wishlist: int = 0


class RecommendationsResponse(BaseModel):
    items: List[BookWithReason]
    basis: RecommendationBasis | None = None
    sources: RecommendationSources | None = None


class RandomDiscoveryResponse(BaseModel):
    items: List[BookWithReason]
