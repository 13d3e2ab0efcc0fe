"""Prompt templates for LLM fallback extraction."""

from __future__ import annotations

from shoespec.core.types import TitleAnalysis

BASE_SYSTEM_PROMPT = """\
You extract running shoe specifications from long-form articles, reviews and comparisons.

Return ONLY valid JSON of this shape:

type Item = {
  brand_name: string | null,
  model: string | null,
  upper_breathability: "low" | "medium" | "high" | null,
  carbon_plate: boolean | null,
  waterproof: boolean | null,
  heel_height: number | null,      // mm stack height at the heel (not "platform height")
  forefoot_height: number | null,  // mm
  drop: number | null,             // mm; heel - forefoot when both are known
  weight: number | null,           // grams; convert ounces (1 oz = 28.35 g)
  price_usd: number | null,        // only an explicitly stated monetary price
  price_currency: string | null,   // "USD", "EUR", "GBP", ...
  price: number | null,            // raw number as stated, before conversion
  primary_use: string | null,      // "daily trainer", "tempo", "race", "trail running"
  cushioning_type: "firm" | "balanced" | "max" | null,
  surface_type: "road" | "trail" | null,
  foot_width: "narrow" | "standard" | "wide" | null,
  additional_features: string | null
};
type Out = { items: Item[] };

Rules:
- If unsure, use null. Never invent values.
- "10mm drop", ratings, percentages and distances are not prices.
- Valid USD price range is 40-500; otherwise price_usd = null.
- waterproof = true only when GTX / GORE-TEX / waterproof / water-resistant is stated.
- One article can cover several models; output each as its own item.
- Skip items without both brand and model. Model names must be complete ("Evo SL", not "Evo").
"""

FEW_SHOT_EXAMPLES = """\
EXAMPLE 1 (comparison):
Text mentions "Brooks Ghost 17 vs Brooks Ghost 16", 10mm drop, $140, engineered mesh upper.
Return:
{"items": [
  {"brand_name": "Brooks", "model": "Ghost 17", "upper_breathability": "high",
   "carbon_plate": null, "waterproof": false, "heel_height": 35, "forefoot_height": 25,
   "drop": 10, "weight": 278, "price_usd": 140, "price_currency": "USD",
   "primary_use": "daily trainer", "cushioning_type": "balanced", "surface_type": "road",
   "foot_width": "standard", "additional_features": "engineered mesh upper"},
  {"brand_name": "Brooks", "model": "Ghost 16", "upper_breathability": "medium",
   "carbon_plate": null, "waterproof": false, "heel_height": 35, "forefoot_height": 25,
   "drop": 10, "weight": 273, "price_usd": 130, "price_currency": "USD",
   "primary_use": "daily trainer", "cushioning_type": "firm", "surface_type": "road",
   "foot_width": "standard", "additional_features": null}
]}

EXAMPLE 2 (trail shoe priced in EUR):
"€150", GTX upper, 10.6 oz, stack 36/30 mm.
Return:
{"items": [
  {"brand_name": "Brooks", "model": "Caldera 8", "upper_breathability": "low",
   "carbon_plate": false, "waterproof": true, "heel_height": 36, "forefoot_height": 30,
   "drop": 6, "weight": 300, "price_usd": 162, "price_currency": "EUR", "price": 150,
   "primary_use": "trail running", "cushioning_type": "max", "surface_type": "trail",
   "foot_width": "narrow", "additional_features": "gaiter attachment points"}
]}
"""

VALIDATION_RULES = """\
Only include values that are EXPLICITLY stated:
- heel/forefoot: exact mm figures ("32 mm in heel", "stack height 38mm")
- weight: exact grams or ounces
- price: exact amount with a currency symbol or code
- cushioning: "firm" (firmer side, stiff), "max" (plush, soft, maximal stack), "balanced" (moderate)
- width: "narrow" (snug, tight midfoot), "wide" (roomy toe box), "standard" (true to size)
- breathability: "high" (breathable mesh), "medium" (some ventilation), "low" (GTX, not breathable)
- carbon_plate: only when a carbon plate or carbon fiber is mentioned
"""


def _focus(analysis: TitleAnalysis | None) -> tuple[str, str]:
    if analysis and analysis.scenario == "specific" and analysis.brand and analysis.model:
        target = f"{analysis.brand} {analysis.model}"
        return (
            f'FOCUS: the title names "{target}". Extract specifications ONLY for this model.',
            f"- Extract ONLY {target}; other shoes are comparison noise.\n"
            "- If this model is not described with specifications, return {\"items\": []}.",
        )
    if analysis and analysis.scenario == "brand-only" and analysis.brand:
        return (
            f'BRAND FOCUS: the title is about "{analysis.brand}". Extract ONLY {analysis.brand} models.',
            f"- Ignore every brand other than {analysis.brand}.\n"
            "- Only include models with detailed specifications.",
        )
    return (
        "GENERAL ARTICLE: extract every running shoe model that has detailed specifications.",
        "- Ignore brief mentions without specifications.\n"
        "- Focus on models that are actually reviewed or tested.",
    )


def build_system_prompt(analysis: TitleAnalysis | None) -> str:
    focus, filtering = _focus(analysis)
    return f"{BASE_SYSTEM_PROMPT}\n{focus}\n\n{filtering}\n\n{VALIDATION_RULES}"


def build_user_prompt(content: str, title: str | None, analysis: TitleAnalysis | None) -> str:
    if analysis and analysis.scenario == "specific" and analysis.brand and analysis.model:
        instruction = f"Focus on extracting specifications for: {analysis.brand} {analysis.model}"
    elif analysis and analysis.scenario == "brand-only" and analysis.brand:
        instruction = f"Focus on extracting {analysis.brand} models with their specifications"
    else:
        instruction = "Extract all running shoe models with their specifications"
    title_part = f"Title: {title}\n\n" if title else ""
    return f"{title_part}{instruction}\n\nContent: {content}"
