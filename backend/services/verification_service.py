import asyncio
import uuid
from typing import List, Optional, Union

from config import settings, logger
from exceptions import SchemaViolationException, UpstreamUnavailableException
from models.api_responses import ToolCallRecord
from models.inputs import Modality, NormalizedInput
from models.verdicts import Verdict, VerificationResponse
from prompts import build_corrective_note
from .cache import SessionRegistry, SessionVerdictCache
from .fingerprint import fingerprint
from .normalizer import InputNormalizer
from .orchestration import ReasoningOrchestrator
from .rendering import render_verdict_markdown
from .validator import VerdictValidator


def build_capability_notices(failures: List[ToolCallRecord]) -> List[str]:
    """Degraded-mode disclosures, one per failing capability."""
    notices = []
    seen = set()
    for failure in failures:
        name = failure.get("name")
        if name in seen:
            continue
        seen.add(name)
        reason = failure.get("reason") or "unknown error"
        if name == "search_web":
            notices.append(
                f"Web search was unavailable during this analysis ({reason}); "
                "the verdict relies on the reasoning engine's own knowledge and may be incomplete."
            )
        elif name == "fetch_url_content":
            notices.append(f"Some source pages could not be fetched ({reason}).")
        elif name == "get_current_date_time":
            notices.append(f"The current date could not be determined ({reason}).")
        else:
            notices.append(f"Capability {name} failed ({reason}).")
    return notices


class VerificationService:
    """
    Runs one analysis request: normalize, fingerprint, consult the session
    cache, orchestrate the engine on a miss, validate, store.
    """

    def __init__(
        self,
        normalizer: Optional[InputNormalizer] = None,
        orchestrator: Optional[ReasoningOrchestrator] = None,
        validator: Optional[VerdictValidator] = None,
        sessions: Optional[SessionRegistry] = None,
        max_concurrent: Optional[int] = None,
        analysis_timeout: Optional[float] = None,
    ):
        self.normalizer = normalizer or InputNormalizer()
        self.orchestrator = orchestrator or ReasoningOrchestrator()
        self.validator = validator or VerdictValidator()
        self.sessions = sessions or SessionRegistry()
        self.analysis_timeout = analysis_timeout or settings.ANALYSIS_TIMEOUT
        self._semaphore = asyncio.Semaphore(max_concurrent or settings.MAX_CONCURRENT_ANALYSES)

    async def verify(
        self,
        payload: str,
        modality: Union[Modality, str] = Modality.TEXT,
        session_id: Optional[str] = None,
    ) -> VerificationResponse:
        start_time = asyncio.get_running_loop().time()

        # Page fetches for URL inputs count against the same bound.
        async with self._semaphore:
            normalized = await self.normalizer.normalize(payload, modality)
        claim_fp = fingerprint(normalized.canonical_text)

        if session_id:
            cache = self.sessions.session(session_id)
        else:
            cache = SessionVerdictCache(f"anonymous-{uuid.uuid4()}")

        async with cache.lock_for(claim_fp):
            cached = cache.get(claim_fp)
            if cached is not None:
                logger.info(
                    "Returning cached verdict.",
                    extra={"session_id": session_id, "fingerprint": claim_fp}
                )
                return self._build_response(session_id, claim_fp, normalized, cached, cached=True)

            async with self._semaphore:
                try:
                    verdict = await asyncio.wait_for(self._analyze(normalized), timeout=self.analysis_timeout)
                except asyncio.TimeoutError:
                    logger.error(f"Analysis timed out after {self.analysis_timeout} seconds.")
                    raise UpstreamUnavailableException("analysis timed out")

            if verdict.capability_notices:
                logger.info(
                    "Caching verdict produced with unavailable capabilities.",
                    extra={"fingerprint": claim_fp, "notices": len(verdict.capability_notices)}
                )
            cache.put(claim_fp, verdict)

        duration = round(asyncio.get_running_loop().time() - start_time, 2)
        logger.info(
            f"Verification completed in {duration} seconds.",
            extra={
                "session_id": session_id,
                "fingerprint": claim_fp,
                "classification": verdict.classification.value,
                "confidence": verdict.confidence_percent,
            }
        )
        return self._build_response(session_id, claim_fp, normalized, verdict, cached=False)

    def end_session(self, session_id: str) -> bool:
        return self.sessions.end_session(session_id)

    async def _analyze(self, normalized: NormalizedInput) -> Verdict:
        result = await self.orchestrator.analyze(normalized)
        try:
            verdict = self.validator.validate(result["raw_output"], normalized)
        except SchemaViolationException as e:
            logger.warning(
                "Engine output violated the verdict schema, retrying once with corrective instructions.",
                extra={"violations": e.violations}
            )
            result = await self.orchestrator.analyze(normalized, corrective_note=build_corrective_note(e.violations))
            verdict = self.validator.validate(result["raw_output"], normalized)

        notices = build_capability_notices(result["capability_failures"])
        if notices:
            verdict = verdict.model_copy(update={"capability_notices": notices})
        return verdict

    @staticmethod
    def _build_response(
        session_id: Optional[str],
        claim_fp: str,
        normalized: NormalizedInput,
        verdict: Verdict,
        cached: bool,
    ) -> VerificationResponse:
        return VerificationResponse(
            session_id=session_id,
            fingerprint=claim_fp,
            cached=cached,
            modality=normalized.source_modality.value,
            resolved_from_url=normalized.resolved_from_url,
            source_url=normalized.source_url,
            verdict=verdict,
            rendered=render_verdict_markdown(verdict, normalized),
        )
