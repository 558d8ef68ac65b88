from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FoodItem(BaseModel):
    """A scanned product. Ingredients are raw label text, one entry per ingredient."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    ingredients: list[str] = Field(default_factory=list)
    allergens: list[str] = Field(default_factory=list)
    additives: list[str] = Field(default_factory=list)
    category: Optional[str] = None
    data_source: str = "Unknown"  # OpenFoodFacts|USDA|Spoonacular|Unknown
    barcode: Optional[str] = None
    brand: Optional[str] = None
