from utils.logger import setup_logger, get_logger
from utils.function_to_schema import function_to_schema

# Export utils
__all__ = ["setup_logger", "get_logger", "function_to_schema"]
