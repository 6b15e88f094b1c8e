from typing import List

from models.inputs import NormalizedInput
from models.verdicts import Verdict

ORIGINAL_INPUT_PREVIEW_CHARS = 500


def render_verdict_markdown(verdict: Verdict, normalized: NormalizedInput) -> str:
    """Human-readable report in the layout end users of the fact-checker expect."""
    lines: List[str] = []

    if verdict.user_instruction_result:
        lines += ["### User Instruction Result", verdict.user_instruction_result, ""]

    lines += ["### News Analysis Result", verdict.analysis or "No analysis provided.", ""]

    if verdict.capability_notices:
        lines.append("> **Note:** " + " ".join(verdict.capability_notices))
        lines.append("")

    lines += ["### Summary of Claims", verdict.summary or "No summary provided.", ""]

    lines.append("### Claim Evaluations")
    for claim in verdict.claims:
        entry = f"- **{claim.label.value}**: {claim.claim_text}"
        if claim.rationale:
            entry += f" ({claim.rationale})"
        lines.append(entry)
    lines.append("")

    lines += [
        "### Classification and Confidence Score",
        f"**Classification:** {verdict.classification.value}",
        f"**Confidence Score:** {verdict.confidence_percent}%",
        "",
    ]

    lines.append("### Sources")
    if verdict.sources:
        for source in verdict.sources:
            entry = f"- [{source.name}]({source.url})"
            if source.publication_date:
                entry += f", published {source.publication_date}"
            lines.append(entry)
    else:
        lines.append("- No credible sources were found.")
    lines.append("")

    if verdict.cybersecurity_tips:
        lines.append("### Cybersecurity Tips")
        lines += [f"- Cybersecurity Tip: {tip}" for tip in verdict.cybersecurity_tips]
        lines.append("")

    original = normalized.source_url if normalized.resolved_from_url else normalized.canonical_text
    if len(original) > ORIGINAL_INPUT_PREVIEW_CHARS:
        original = original[:ORIGINAL_INPUT_PREVIEW_CHARS].rstrip() + "..."
    lines.append(f'**Original Input:** "{original}"')

    return "\n".join(lines)
