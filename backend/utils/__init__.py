from .parsing import extract_json_block, parse_numeric_value
from .validation import InputValidator

__all__ = [
    "extract_json_block",
    "parse_numeric_value",
    "InputValidator",
]
