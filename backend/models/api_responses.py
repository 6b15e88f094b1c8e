from typing import TypedDict, Literal, Optional, Dict, Any, List

CapabilityName = Literal["search_web", "get_current_date_time", "fetch_url_content"]

class SearchSnippet(TypedDict):
    """One Google Custom Search result."""
    title: str
    url: str
    snippet: str

class FetchedPage(TypedDict):
    """Readable text extracted from a web page."""
    url: str
    title: str
    body_text: str

class ToolCallRecord(TypedDict, total=False):
    """Audit entry for one capability invocation made on behalf of the engine."""
    name: str
    args: Dict[str, Any]
    status: Literal["ok", "unavailable", "error"]
    duration_ms: float
    result_preview: str
    reason: Optional[str]

class OrchestrationResult(TypedDict):
    raw_output: str
    tool_calls: List[ToolCallRecord]
    capability_failures: List[ToolCallRecord]
