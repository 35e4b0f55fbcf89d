from repositories.chat import ChatSessionRepository, MessageRepository
from repositories.event_log import EventLog
from repositories.food import UserFoodRepository, FoodEntryRepository
from repositories.user_repo import UserRepository

# Export all repositories
__all__ = [
    'ChatSessionRepository',
    'MessageRepository',
    'EventLog',
    'UserFoodRepository',
    'FoodEntryRepository',
    'UserRepository'
]
