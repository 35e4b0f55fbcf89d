from api.router import router as api_router

# Export router
__all__ = ['api_router']
