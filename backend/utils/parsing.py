import json
import re
from typing import Any, Optional, Dict

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


def extract_json_block(text: str) -> Optional[Dict[str, Any]]:
    """Extract the first valid JSON object from text."""
    if not text:
        return None

    fenced = _FENCE_PATTERN.search(text)
    if fenced:
        try:
            return json.loads(fenced.group(1))
        except json.JSONDecodeError:
            pass

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                candidate = text[start : i + 1]
                try:
                    return json.loads(candidate)
                except json.JSONDecodeError:
                    try:
                        cleaned = re.sub(r"[\x00-\x1f]", "", candidate)
                        return json.loads(cleaned)
                    except json.JSONDecodeError:
                        return None
    return None

def parse_numeric_value(val: Any) -> Optional[float]:
    """Parse a numeric value from strings such as '85', '85%' or '85.0 %'."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return float(val)
    try:
        s = str(val).strip().replace(",", "").rstrip("%").strip()
        m = re.match(r"^(-?\d+(?:\.\d+)?)$", s)
        return float(m.group(1)) if m else None
    except (ValueError, TypeError):
        return None
