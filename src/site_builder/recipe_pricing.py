from __future__ import annotations

import json
import logging
from typing import Any

import vertexai
from pydantic import ValidationError
from vertexai.generative_models import GenerationConfig, GenerativeModel

from .models.recipe import (
    PricingAnalysis,
    PricingMode,
    RecipeEstimate,
    RecipePricingResult,
)

logger = logging.getLogger(__name__)

PARSE_PROMPT = """You are a recipe costing assistant for cottage food businesses (home bakers, chocolatiers, hot sauce makers, etc).

The user will describe a recipe in natural language. Extract structured data.

Return ONLY valid JSON (no markdown, no backticks) with this exact structure:
{
  "name": "Recipe name",
  "description": "Brief description",
  "category": "one of: cookies, cakes, breads, pastries, pies, chocolates, hot_sauce, jams, other",
  "batch_yield": number,
  "yield_unit": "pieces, loaves, bottles, jars, dozen, etc",
  "ingredients": [
    {
      "name": "ingredient name",
      "quantity": number,
      "unit": "cups, oz, lbs, tsp, tbsp, each, etc",
      "estimated_package_price": number,
      "estimated_package_size": number,
      "estimated_package_unit": "lbs, oz, each, bag, etc",
      "cost_in_recipe": number
    }
  ],
  "packaging_cost_estimate": number,
  "overhead_cost_estimate": number,
  "total_ingredient_cost": number,
  "cost_per_unit": number,
  "notes": "any relevant notes about the recipe"
}

For estimated prices, use current average US grocery store prices.
Calculate cost_in_recipe as: (quantity_used / package_size) * package_price, converting units as needed."""

PRICE_PROMPT = """You are a pricing advisor for cottage food businesses.

Given a product with its cost information, provide competitive pricing analysis and recommendations.

The user's state matters because cottage food laws vary (revenue caps, allowed products, labeling requirements).

Return ONLY valid JSON (no markdown, no backticks) with this structure:
{
  "product_name": "name",
  "cost_per_unit": number,
  "market_analysis": {
    "farmers_market_range": {"low": number, "high": number},
    "home_baker_range": {"low": number, "high": number},
    "artisan_bakery_range": {"low": number, "high": number},
    "online_range": {"low": number, "high": number}
  },
  "recommended_price": number,
  "margin_percent": number,
  "reasoning": "2-3 sentences explaining why this price",
  "pricing_tips": ["tip 1", "tip 2", "tip 3"],
  "revenue_projection": {
    "weekly_units": number,
    "weekly_revenue": number,
    "weekly_profit": number,
    "monthly_profit": number,
    "annual_revenue": number
  },
  "state_info": {
    "state": "XX",
    "revenue_cap": number or null,
    "cap_note": "note about the cap or 'No cap in this state'",
    "months_to_cap": number or null,
    "labeling_required": "brief labeling requirement note"
  }
}

For revenue projections, assume a typical home-based cottage food operation (10-25 units per week for baked goods, 5-15 for specialty items)."""


class PricingServiceError(Exception):
    """The generative model failed or returned something unusable."""


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def pricing_input_for(recipe: RecipeEstimate, state: str | None) -> str:
    def money(value: float | None) -> str:
        return f"${value:.2f}" if value is not None else "unknown"

    return "\n".join(
        [
            f"Product: {recipe.name}",
            f"Category: {recipe.category}",
            f"Cost per unit: {money(recipe.cost_per_unit)}",
            f"Batch yield: {recipe.batch_yield} {recipe.yield_unit or ''}".rstrip(),
            f"Total batch cost: {money(recipe.total_ingredient_cost)}",
            f"State: {state or 'Unknown'}",
            f"Description: {recipe.description or ''}",
        ]
    )


class RecipePricingAdapter:
    """Recipe costing and pricing backed by a Vertex AI Gemini model."""

    def __init__(
        self,
        *,
        project_id: str | None = None,
        location: str = "us-central1",
        model_name: str = "gemini-2.5-flash",
        model: Any | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            project_id: GCP project ID, used when no ``model`` is given
            location: Vertex AI location
            model_name: Gemini model name
            model: Pre-built model exposing ``generate_content``
        """
        self.model_name = model_name
        if model is None:
            vertexai.init(project=project_id, location=location)
            model = GenerativeModel(model_name)
        self.model = model

    def generate_json(self, prompt: str, text: str, *, temperature: float) -> Any:
        generation_config = GenerationConfig(temperature=temperature, max_output_tokens=2048)
        try:
            response = self.model.generate_content(
                [prompt, text],
                generation_config=generation_config,
            )
            generated_text = response.text
        except Exception as exc:
            logger.error("Generative model request failed", exc_info=True, extra={"model": self.model_name})
            raise PricingServiceError("The pricing assistant is unavailable right now") from exc

        logger.info(
            "Generated content with Vertex AI",
            extra={
                "model": self.model_name,
                "temperature": temperature,
                "input_length": len(text),
                "output_length": len(generated_text),
            },
        )

        try:
            return json.loads(strip_code_fences(generated_text))
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse JSON response", extra={"response": generated_text})
            raise PricingServiceError("Failed to parse AI response") from exc

    def parse_recipe(self, description: str) -> RecipeEstimate:
        data = self.generate_json(PARSE_PROMPT, f"Recipe description:\n{description}", temperature=0.3)
        try:
            return RecipeEstimate.model_validate(data)
        except ValidationError as exc:
            raise PricingServiceError("Failed to parse recipe") from exc

    def price(self, product_description: str) -> PricingAnalysis:
        data = self.generate_json(PRICE_PROMPT, product_description, temperature=0.4)
        try:
            return PricingAnalysis.model_validate(data)
        except ValidationError as exc:
            raise PricingServiceError("Failed to parse pricing response") from exc

    def run(self, text: str, mode: PricingMode, *, state: str | None = None) -> RecipePricingResult:
        """Run one pricing request.

        ``full`` mode returns the parsed recipe even when the pricing step
        fails; the other modes raise ``PricingServiceError``.
        """
        if mode == PricingMode.price:
            return RecipePricingResult(pricing=self.price(text))

        recipe = self.parse_recipe(text)
        if mode == PricingMode.parse:
            return RecipePricingResult(recipe=recipe)

        try:
            pricing = self.price(pricing_input_for(recipe, state))
        except PricingServiceError:
            logger.warning("Pricing step failed, returning recipe only", extra={"recipe": recipe.name})
            pricing = None
        return RecipePricingResult(recipe=recipe, pricing=pricing)


__all__ = [
    "PARSE_PROMPT",
    "PRICE_PROMPT",
    "PricingServiceError",
    "RecipePricingAdapter",
    "pricing_input_for",
    "strip_code_fences",
]
