import asyncio
import json
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from api.date_time import get_current_date_time
from api.google_search import search_web, format_snippets
from api.url_content import fetch_url_content, host_of
from config import settings, logger, API_TIMEOUTS, LLM_CONFIG
from exceptions import (
    CircuitBreakerOpenException,
    ContentFetchException,
    SearchUnavailableException,
    UpstreamUnavailableException,
)
from models.api_responses import OrchestrationResult, ToolCallRecord
from models.inputs import NormalizedInput
from prompts import build_instructions, build_user_message
from utils.validation import InputValidator
from .llm import call_gemini

TOOL_DEFINITIONS = [
    {
        "name": "search_web",
        "description": "Search the web using Google Custom Search. Returns result snippets with titles and URLs.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "query": {"type": "STRING", "description": "The search query, e.g., 'NASA budget 2024 Reuters'"}
            },
            "required": ["query"]
        }
    },
    {
        "name": "get_current_date_time",
        "description": "Returns the current date and time. Use it for today's date.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "timezone": {"type": "STRING", "description": "Optional IANA timezone name, e.g., 'Asia/Manila'. Defaults to UTC."}
            }
        }
    },
    {
        "name": "fetch_url_content",
        "description": "Fetches and extracts the title and readable text from the given URL.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "url": {"type": "STRING", "description": "Absolute http(s) URL of the page."}
            },
            "required": ["url"]
        }
    },
]

EngineCaller = Callable[..., Awaitable[Dict[str, Any]]]


class CapabilitySet:
    """
    The external capabilities the reasoning engine may invoke.

    Every invocation goes through ``invoke`` so timeouts, logging and failure
    normalization happen in one place. A failing capability never raises; it
    answers with a "not available" message the engine can read.
    """

    def __init__(
        self,
        search: Callable = search_web,
        clock: Callable = get_current_date_time,
        fetcher: Callable = fetch_url_content,
        timeout: float = API_TIMEOUTS.TOOL_CALL,
    ):
        self.timeout = timeout
        self._handlers = {
            "search_web": self._search,
            "get_current_date_time": self._date_time,
            "fetch_url_content": self._fetch,
        }
        self._search_fn = search
        self._clock_fn = clock
        self._fetch_fn = fetcher

    @property
    def declarations(self) -> List[Dict[str, Any]]:
        return TOOL_DEFINITIONS

    @property
    def names(self) -> List[str]:
        return list(self._handlers)

    async def invoke(self, name: str, args: Optional[Dict[str, Any]] = None) -> Tuple[Dict[str, Any], ToolCallRecord]:
        args = args or {}
        record: ToolCallRecord = {"name": name, "args": args, "status": "ok", "reason": None}
        start = time.monotonic()

        handler = self._handlers.get(name)
        if handler is None:
            payload = {"error": f"Unknown tool: {name}"}
            record.update(status="error", reason="unknown tool")
        else:
            try:
                payload = await asyncio.wait_for(handler(**args), timeout=self.timeout)
            except asyncio.TimeoutError:
                payload = {"content": f"{name} is not available at the moment: timed out.", "available": False}
                record.update(status="unavailable", reason="timed out")
            except SearchUnavailableException as e:
                payload = {"content": f"Web Search is not available at the moment: {e.details['reason']}.", "available": False}
                record.update(status="unavailable", reason=e.details["reason"])
            except ContentFetchException as e:
                if e.restricted:
                    text = "This page requires login or is access-restricted. Cannot analyze private content."
                else:
                    text = f"Failed to fetch content from URL: {e.details['reason']}."
                payload = {"content": text, "available": False, "restricted": e.restricted}
                record.update(status="unavailable", reason=e.details["reason"])
            except TypeError as e:
                payload = {"error": f"Invalid arguments for {name}: {e}"}
                record.update(status="error", reason="invalid arguments")
            except Exception as e:
                logger.exception(f"Error executing tool {name}")
                payload = {"content": f"{name} is not available at the moment.", "available": False}
                record.update(status="unavailable", reason=type(e).__name__)

        record["duration_ms"] = round((time.monotonic() - start) * 1000, 2)
        record["result_preview"] = json.dumps(payload, ensure_ascii=False)[:200]
        logger.info(
            f"Tool call {name} finished with status {record['status']}",
            extra={"tool": name, "tool_args": args, "status": record["status"], "duration_ms": record["duration_ms"]}
        )
        return payload, record

    async def _search(self, query: str) -> Dict[str, Any]:
        results = await self._search_fn(query)
        return {"content": format_snippets(results), "result_count": len(results)}

    async def _date_time(self, timezone: Optional[str] = None) -> Dict[str, Any]:
        return await self._clock_fn(timezone)

    async def _fetch(self, url: str) -> Dict[str, Any]:
        page = await self._fetch_fn(InputValidator.sanitize_tool_argument(url, max_length=2048))
        return {
            "url": page["url"],
            "title": page["title"],
            "content": page["body_text"][:LLM_CONFIG.MAX_TOOL_RESULT_CHARS],
        }


class ReasoningOrchestrator:
    """Drives the reasoning engine through a bounded function-calling loop."""

    def __init__(
        self,
        capabilities: Optional[CapabilitySet] = None,
        engine: Optional[EngineCaller] = None,
        max_turns: Optional[int] = None,
        trusted_domains: Optional[List[str]] = None,
    ):
        self.capabilities = capabilities or CapabilitySet()
        self.engine = engine or call_gemini
        self.max_turns = max(1, max_turns or settings.MAX_TOOL_TURNS)
        domains = settings.TRUSTED_DOMAINS if trusted_domains is None else trusted_domains
        self.trusted_domains = [d.lower().lstrip(".") for d in domains]

    def trusted_domain_for(self, normalized: NormalizedInput) -> Optional[str]:
        if not normalized.resolved_from_url or not normalized.source_url:
            return None
        host = host_of(normalized.source_url)
        for domain in self.trusted_domains:
            if host == domain or host.endswith("." + domain):
                return domain
        return None

    async def analyze(self, normalized: NormalizedInput, corrective_note: Optional[str] = None) -> OrchestrationResult:
        trusted_domain = self.trusted_domain_for(normalized)
        if trusted_domain:
            logger.info("Input resolved from trusted domain %s.", trusted_domain)

        system_instruction = build_instructions(normalized, trusted_domain)
        contents = [{"role": "user", "parts": [{"text": build_user_message(normalized, corrective_note)}]}]
        tool_log: List[ToolCallRecord] = []

        for turn in range(self.max_turns):
            final_turn = turn == self.max_turns - 1
            tools = None if final_turn else self.capabilities.declarations
            response = await self._call_engine(contents, system_instruction, tools)

            tool_calls = response.get("tool_calls") or []
            if tool_calls and not final_turn:
                contents.append(response.get("content") or {
                    "role": "model",
                    "parts": [{"functionCall": call} for call in tool_calls]
                })
                results = await asyncio.gather(*(
                    self.capabilities.invoke(call.get("name"), call.get("args")) for call in tool_calls
                ))
                parts = []
                for call, (payload, record) in zip(tool_calls, results):
                    tool_log.append(record)
                    parts.append({"functionResponse": {"name": call.get("name"), "response": payload}})
                contents.append({"role": "function", "parts": parts})
                logger.info(f"Agent turn {turn}: executed {len(tool_calls)} tool call(s).")
                continue

            logger.info(f"Agent turn {turn}: finished with final answer.")
            return {
                "raw_output": response.get("text") or "",
                "tool_calls": tool_log,
                "capability_failures": [r for r in tool_log if r["status"] != "ok"],
            }

        # max_turns >= 1 and the last turn carries no tools, so the loop always returns
        raise UpstreamUnavailableException("engine did not produce a final answer", recoverable=False)

    async def _call_engine(self, contents, system_instruction, tools) -> Dict[str, Any]:
        try:
            return await self.engine(contents, system_instruction=system_instruction, tools=tools)
        except UpstreamUnavailableException:
            raise
        except CircuitBreakerOpenException as e:
            raise UpstreamUnavailableException(e.message)
