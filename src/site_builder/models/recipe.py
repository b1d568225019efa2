from __future__ import annotations

from enum import Enum
from typing import Sequence

from pydantic import BaseModel, Field


class PricingMode(str, Enum):
    parse = "parse"
    price = "price"
    full = "full"


class RecipeIngredient(BaseModel):
    name: str
    quantity: float = 0.0
    unit: str = ""
    estimated_package_price: float | None = None
    estimated_package_size: float | None = None
    estimated_package_unit: str | None = None
    cost_in_recipe: float | None = None


class RecipeEstimate(BaseModel):
    name: str
    description: str | None = None
    category: str = "other"
    batch_yield: float | None = None
    yield_unit: str | None = None
    ingredients: Sequence[RecipeIngredient] = Field(default_factory=list)
    packaging_cost_estimate: float | None = None
    overhead_cost_estimate: float | None = None
    total_ingredient_cost: float | None = None
    cost_per_unit: float | None = None
    notes: str | None = None


class PriceRange(BaseModel):
    low: float
    high: float


class MarketAnalysis(BaseModel):
    farmers_market_range: PriceRange | None = None
    home_baker_range: PriceRange | None = None
    artisan_bakery_range: PriceRange | None = None
    online_range: PriceRange | None = None


class RevenueProjection(BaseModel):
    weekly_units: float | None = None
    weekly_revenue: float | None = None
    weekly_profit: float | None = None
    monthly_profit: float | None = None
    annual_revenue: float | None = None


class StateInfo(BaseModel):
    state: str | None = None
    revenue_cap: float | None = None
    cap_note: str | None = None
    months_to_cap: float | None = None
    labeling_required: str | None = None


class PricingAnalysis(BaseModel):
    product_name: str | None = None
    cost_per_unit: float | None = None
    market_analysis: MarketAnalysis = Field(default_factory=MarketAnalysis)
    recommended_price: float | None = None
    margin_percent: float | None = None
    reasoning: str | None = None
    pricing_tips: Sequence[str] = Field(default_factory=list)
    revenue_projection: RevenueProjection | None = None
    state_info: StateInfo | None = None


class RecipePricingResult(BaseModel):
    recipe: RecipeEstimate | None = None
    pricing: PricingAnalysis | None = None


__all__ = [
    "MarketAnalysis",
    "PriceRange",
    "PricingAnalysis",
    "PricingMode",
    "RecipeEstimate",
    "RecipeIngredient",
    "RecipePricingResult",
    "RevenueProjection",
    "StateInfo",
]
