"""
Product recommendations

Purpose: suggest products to go with an analysis result.

Input: the canonical analysis result (dict or AnalysisResult).

Output: list of ProductRecommendation.

Notes: placeholder. The input is ignored and a fixed catalog is returned after a simulated delay;
keep the signature (async, result in, products out, never fails) so a real engine can replace it.
"""
import asyncio
import logging
from typing import Any, List

from config import RECOMMENDATION_DELAY
from models import ProductRecommendation

logger = logging.getLogger(__name__)

CATALOG = (
    ProductRecommendation(
        id="1",
        name="Premium Vitamin D3 5000 IU",
        category="Vitamins",
        description="High-potency Vitamin D3 supplement to support bone health and immune function",
        price="$24.99",
        image="/vitamin-d-supplement.png",
        benefits=["Supports bone and teeth health", "Boosts immune system", "Improves mood and energy levels"],
    ),
    ProductRecommendation(
        id="2",
        name="Omega-3 Fish Oil Complex",
        category="Heart Health",
        description="Premium fish oil with EPA and DHA to support cardiovascular health",
        price="$32.99",
        image="/omega-3-fish-oil.png",
        benefits=[
            "Supports heart health",
            "Helps maintain healthy cholesterol levels",
            "Anti-inflammatory properties",
        ],
    ),
    ProductRecommendation(
        id="3",
        name="Blood Sugar Support Formula",
        category="Metabolic Health",
        description="Natural blend of herbs and minerals to support healthy glucose metabolism",
        price="$29.99",
        image="/blood-sugar-supplement.jpg",
        benefits=[
            "Supports healthy blood sugar levels",
            "Contains chromium and cinnamon extract",
            "Promotes metabolic health",
        ],
    ),
    ProductRecommendation(
        id="4",
        name="Complete Multivitamin",
        category="General Health",
        description="Comprehensive daily multivitamin with essential nutrients",
        price="$19.99",
        image="/multivitamin-pills.png",
        benefits=["Fills nutritional gaps", "Supports overall health and wellness", "Easy one-a-day formula"],
    ),
    ProductRecommendation(
        id="5",
        name="Cholesterol Management Complex",
        category="Heart Health",
        description="Plant sterols and red yeast rice to support healthy cholesterol levels",
        price="$34.99",
        image="/cholesterol-supplement.jpg",
        benefits=["Supports healthy cholesterol levels", "Contains plant sterols", "Promotes cardiovascular wellness"],
    ),
    ProductRecommendation(
        id="6",
        name="Iron Plus with Vitamin C",
        category="Energy & Vitality",
        description="Gentle iron supplement with Vitamin C for enhanced absorption",
        price="$16.99",
        image="/iron-supplement.jpg",
        benefits=[
            "Supports healthy iron levels",
            "Reduces fatigue and tiredness",
            "Enhanced with Vitamin C for better absorption",
        ],
    ),
)


async def recommend(analysis_result: Any, delay: float = None) -> List[ProductRecommendation]:
    await asyncio.sleep(RECOMMENDATION_DELAY if delay is None else delay)
    logger.info(f"[Recommendations] Returning {len(CATALOG)} catalog products")
    return list(CATALOG)
