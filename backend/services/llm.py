from typing import Dict, Any, List, Optional
import httpx
from config import settings, logger, LLM_CONFIG, RATE_LIMITS_PER_SECOND
from exceptions import UpstreamUnavailableException
from utils.retry import async_retry
from utils.rate_limiter import get_rate_limiter
from utils.circuit_breaker import circuit_breaker

_gemini_limiter = get_rate_limiter("GEMINI", RATE_LIMITS_PER_SECOND.GEMINI)

def parse_gemini_response(data: Dict[str, Any]) -> Dict[str, Any]:
    """Split a generateContent response into text, function calls and the model turn."""
    response = {"raw": data, "text": "", "tool_calls": [], "content": None, "finish_reason": None}
    if not isinstance(data, dict):
        return response

    candidates = data.get("candidates") or []
    if not candidates:
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            logger.warning("Gemini blocked the prompt: %s", block_reason)
            response["finish_reason"] = block_reason
        return response

    candidate = candidates[0] or {}
    response["finish_reason"] = candidate.get("finishReason")
    content = candidate.get("content") or {}
    texts = []
    for part in content.get("parts") or []:
        if text := part.get("text"):
            if not part.get("thought"):
                texts.append(text)
        if func_call := part.get("functionCall"):
            response["tool_calls"].append(func_call)
    response["text"] = "".join(texts)
    if content:
        response["content"] = {"role": content.get("role", "model"), "parts": content.get("parts") or []}
    return response

@circuit_breaker(
    failure_threshold=5,
    recovery_timeout=60.0,
    expected_exception=(UpstreamUnavailableException,),
    name="gemini_llm"
)
@async_retry(max_attempts=3, exceptions=(UpstreamUnavailableException,))
async def call_gemini(
    contents: List[Dict[str, Any]],
    system_instruction: Optional[str] = None,
    tools: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Generic Gemini API caller with function-calling support."""
    if not settings.GEMINI_API_KEY:
        logger.critical("GEMINI_API_KEY not configured.")
        raise UpstreamUnavailableException("API key not configured", recoverable=False)

    await _gemini_limiter.acquire()

    headers = {"Content-Type": "application/json", "x-goog-api-key": settings.GEMINI_API_KEY}
    body: Dict[str, Any] = {
        "contents": contents,
        "generationConfig": {"temperature": LLM_CONFIG.TEMPERATURE},
    }
    if system_instruction:
        body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
    if tools:
        body["tools"] = [{"function_declarations": tools}]

    try:
        async with httpx.AsyncClient(timeout=LLM_CONFIG.REQUEST_TIMEOUT) as client:
            response = await client.post(settings.GEMINI_ENDPOINT, headers=headers, json=body)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.error("Gemini HTTP error %s for URL %s: %s", status, e.request.url, e.response.text)
        raise UpstreamUnavailableException(f"HTTP {status}", recoverable=status not in (400, 401, 403, 404))
    except httpx.RequestError as e:
        logger.error("Gemini request error for URL %s: %s", e.request.url, str(e))
        raise UpstreamUnavailableException(f"Request failed: {type(e).__name__}")
    except ValueError as e:
        logger.error("Gemini returned a non-JSON body: %s", e)
        raise UpstreamUnavailableException("Malformed response body")

    return parse_gemini_response(data)
