import logging
from typing import Any, Dict, List

import backoff
import requests

from config import settings
from utils.logger import get_logger

logger = get_logger("food_search")

USER_AGENT = "CalorieTracker/1.0"


class FoodSearchClient:
    """Read-only nutrition lookup against the Open Food Facts search API"""

    def __init__(self, base_url: str, max_results: int = 8, timeout: float = 10.0):
        self.base_url = base_url
        self.max_results = max_results
        self.timeout = timeout

    @backoff.on_exception(
        backoff.expo,
        (requests.ConnectionError, requests.Timeout),
        max_tries=3,
        logger=logger,
        backoff_log_level=logging.WARNING,
    )
    def search_products(self, query: str) -> List[Dict[str, Any]]:
        params = {
            "search_terms": query,
            "search_simple": "1",
            "action": "process",
            "json": "1",
            "page_size": str(self.max_results),
        }
        response = requests.get(
            self.base_url,
            params=params,
            headers={"User-Agent": USER_AGENT},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json().get("products") or []

    def search(self, query: str) -> str:
        """
        Search and format the results for the model.

        Never raises: failures come back as text telling the model to estimate.
        """
        try:
            products = self.search_products(query)
        except Exception as e:
            logger.error(f"Food search failed for '{query}': {e}")
            return f"Food search failed: {e}. Try estimating nutritional values instead."

        valid = [
            p for p in products
            if p.get("product_name") and (p.get("nutriments") or {}).get("energy-kcal_100g") is not None
        ]
        if not valid:
            return f'No foods found for "{query}". Try a different search term or estimate the nutritional values.'

        results = "\n\n".join(format_product(index, product) for index, product in enumerate(valid, 1))
        return f'Found {len(valid)} results for "{query}":\n\n{results}'


def format_product(index: int, product: Dict[str, Any]) -> str:
    n = product.get("nutriments") or {}
    brand = f" ({product['brands']})" if product.get("brands") else ""
    return (
        f"{index}. **{product.get('product_name') or 'Unknown'}**{brand}\n"
        f"   Per 100g: {round(n.get('energy-kcal_100g') or 0)} kcal, "
        f"protein {(n.get('proteins_100g') or 0):.1f}g, "
        f"carbs {(n.get('carbohydrates_100g') or 0):.1f}g, "
        f"fat {(n.get('fat_100g') or 0):.1f}g, "
        f"fiber {(n.get('fiber_100g') or 0):.1f}g, "
        f"salt {(n.get('salt_100g') or 0):.2f}g"
    )


# Dependency
def get_food_search_client() -> FoodSearchClient:
    return FoodSearchClient(
        base_url=settings.OPENFOODFACTS_URL,
        max_results=settings.FOOD_SEARCH_MAX_RESULTS,
        timeout=settings.FOOD_SEARCH_TIMEOUT_SECONDS,
    )
