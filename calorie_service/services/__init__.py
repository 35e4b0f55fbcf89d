from services.food_search import FoodSearchClient, get_food_search_client
from services.llm_client import LLMClient, get_llm_client, get_llm_client_factory

# Export the external service clients; the conversation modules are imported directly
__all__ = [
    'FoodSearchClient',
    'get_food_search_client',
    'LLMClient',
    'get_llm_client',
    'get_llm_client_factory'
]
