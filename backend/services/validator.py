import math
from typing import Any, List, Optional

from pydantic import ValidationError

from api.url_content import is_url
from config import logger, CONFIDENCE_POLICY
from exceptions import SchemaViolationException
from models.inputs import NormalizedInput
from models.verdicts import Classification, ClaimEvaluation, ClaimLabel, SourceCitation, Verdict
from utils.parsing import extract_json_block, parse_numeric_value

TIP_PREFIX = "cybersecurity tip:"


def confidence_bounds(classification: Classification) -> tuple:
    """Inclusive confidence range allowed for a classification."""
    if classification == Classification.MIXED:
        return CONFIDENCE_POLICY.MIXED, CONFIDENCE_POLICY.MIXED
    if classification == Classification.UNVERIFIED:
        return CONFIDENCE_POLICY.UNVERIFIED, CONFIDENCE_POLICY.UNVERIFIED
    return CONFIDENCE_POLICY.DECISIVE_MIN, CONFIDENCE_POLICY.DECISIVE_MAX


class VerdictValidator:
    """
    Parses the reasoning engine's final answer into a typed Verdict.

    Out-of-policy values are rejected, never coerced: any problem is collected
    into the ``violations`` of a SchemaViolationException so the caller can ask
    the engine for a corrected answer.
    """

    def validate(self, raw_output: str, normalized: Optional[NormalizedInput] = None) -> Verdict:
        data = extract_json_block(raw_output or "")
        if not isinstance(data, dict):
            raise SchemaViolationException(["response does not contain a JSON object"])

        violations: List[str] = []

        classification = self._classification(data.get("classification"), violations)
        confidence = self._confidence(
            data.get("confidence_percent", data.get("confidence")), classification, violations
        )
        claims = self._claims(data.get("claims"), violations)
        sources = self._sources(data.get("sources"), classification, violations)

        if violations:
            logger.warning(
                "Engine output failed validation.",
                extra={"violations": violations, "modality": normalized.source_modality.value if normalized else None}
            )
            raise SchemaViolationException(violations)

        try:
            return Verdict(
                classification=classification,
                confidence_percent=confidence,
                claims=claims,
                sources=sources,
                cybersecurity_tips=self._tips(data.get("cybersecurity_tips")),
                user_instruction_result=self._optional_text(data.get("user_instruction_result")),
                summary=self._optional_text(data.get("summary")) or "",
                analysis=self._optional_text(data.get("analysis")) or "",
            )
        except ValidationError as e:
            raise SchemaViolationException([f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()])

    @staticmethod
    def _classification(value: Any, violations: List[str]) -> Optional[Classification]:
        if isinstance(value, str):
            try:
                return Classification(value.strip().lower())
            except ValueError:
                pass
        violations.append(
            f"classification must be one of {', '.join(c.value for c in Classification)}, got {value!r}"
        )
        return None

    @staticmethod
    def _confidence(value: Any, classification: Optional[Classification], violations: List[str]) -> Optional[int]:
        number = parse_numeric_value(value)
        if number is None or not math.isfinite(number) or number != int(number):
            violations.append(f"confidence_percent must be an integer percentage, got {value!r}")
            return None
        confidence = int(number)
        if not 0 <= confidence <= 100:
            violations.append(f"confidence_percent must be between 0 and 100, got {confidence}")
            return None
        if classification is not None:
            low, high = confidence_bounds(classification)
            if not low <= confidence <= high:
                expected = f"exactly {low}" if low == high else f"between {low} and {high}"
                violations.append(
                    f"confidence_percent for {classification.value} must be {expected}, got {confidence}"
                )
        return confidence

    @staticmethod
    def _claims(value: Any, violations: List[str]) -> List[ClaimEvaluation]:
        if not isinstance(value, list) or not value:
            violations.append("claims must list at least one claim evaluation")
            return []

        claims = []
        for idx, item in enumerate(value):
            if not isinstance(item, dict):
                violations.append(f"claims[{idx}] must be an object")
                continue
            text = item.get("claim") or item.get("claim_text")
            label = item.get("label")
            if not isinstance(text, str) or not text.strip():
                violations.append(f"claims[{idx}] is missing the claim text")
                continue
            try:
                label = ClaimLabel(str(label).strip().upper())
            except ValueError:
                violations.append(f"claims[{idx}].label must be TRUE, FALSE or UNVERIFIED, got {label!r}")
                continue
            claims.append(ClaimEvaluation(
                claim_text=text.strip(),
                label=label,
                rationale=str(item.get("rationale") or "").strip(),
            ))
        return claims

    @staticmethod
    def _sources(value: Any, classification: Optional[Classification], violations: List[str]) -> List[SourceCitation]:
        sources: List[SourceCitation] = []
        seen = set()
        for item in value if isinstance(value, list) else []:
            if not isinstance(item, dict):
                continue
            url = str(item.get("url") or "").strip()
            name = str(item.get("name") or item.get("title") or "").strip()
            if not name or not is_url(url):
                logger.debug("Dropping citation without name or absolute URL: %s", item)
                continue
            key = url.lower().rstrip("/")
            if key in seen:
                continue
            seen.add(key)
            published = item.get("publication_date")
            sources.append(SourceCitation(
                name=name,
                url=url,
                publication_date=VerdictValidator._optional_text(published),
            ))

        if classification is not None and classification != Classification.UNVERIFIED:
            if len(sources) < CONFIDENCE_POLICY.MIN_SOURCES:
                violations.append(
                    f"at least {CONFIDENCE_POLICY.MIN_SOURCES} distinct sources with a name and absolute URL "
                    f"are required for {classification.value}, got {len(sources)}"
                )
        return sources

    @staticmethod
    def _tips(value: Any) -> List[str]:
        if isinstance(value, str):
            value = [value]
        tips = []
        for tip in value if isinstance(value, list) else []:
            if not isinstance(tip, str) or not tip.strip():
                continue
            tip = tip.strip()
            if tip.lower().startswith(TIP_PREFIX):
                tip = tip[len(TIP_PREFIX):].strip()
            if tip:
                tips.append(tip)
        return tips

    @staticmethod
    def _optional_text(value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        if not text or text.lower() in ("null", "none", "n/a"):
            return None
        return text
