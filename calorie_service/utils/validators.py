from datetime import date, datetime
from typing import Optional, Tuple

from utils.time_utils import parse_day, parse_iso


class Validators:
    @staticmethod
    def has_text(value: Optional[str]) -> bool:
        return isinstance(value, str) and value.strip() != ""

    @staticmethod
    def validate_chat_input(message: Optional[str], image_data: Optional[str]) -> Tuple[bool, str]:
        """
        A request needs non-blank text, a non-blank image, or both
        """
        if not Validators.has_text(message) and not Validators.has_text(image_data):
            return False, "Message or image is required"
        return True, ""

    @staticmethod
    def validate_date(date_str: Optional[str]) -> Tuple[bool, Optional[date], str]:
        """
        Check a required YYYY-MM-DD day
        """
        if not Validators.has_text(date_str):
            return False, None, "Date parameter is required"
        try:
            return True, parse_day(date_str), ""
        except ValueError:
            return False, None, "Invalid date format (expected YYYY-MM-DD)"

    @staticmethod
    def validate_since(since: Optional[str]) -> Tuple[bool, Optional[datetime], str]:
        """
        Check an optional ISO-8601 stream cursor
        """
        if not Validators.has_text(since):
            return True, None, ""
        try:
            return True, parse_iso(since), ""
        except ValueError:
            return False, None, "Invalid since timestamp (expected ISO-8601)"
