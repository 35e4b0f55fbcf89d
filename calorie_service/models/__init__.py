from models.user import User
from models.food import UserFood, FoodEntry
from models.chat import ChatSession, ChatMessage, ChatEvent

# Export all models
__all__ = [
    'User',
    'UserFood',
    'FoodEntry',
    'ChatSession',
    'ChatMessage',
    'ChatEvent'
]
