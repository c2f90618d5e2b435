"""
Normalize a Langflow response envelope into the canonical AnalysisResult

Purpose: turn whatever the engine returned into a fully-populated, UI-safe result.

Input: the raw envelope (dict from the run endpoint) + the submitting user's metadata.

Output: AnalysisResult. Every field is filled; anything missing or malformed in the upstream
document is replaced by the default listed in the tables below.

Example: {"outputs": [{"outputs": [{"results": {"text": {"text": "```json\\n{...}\\n```"}}}]}]}
→ AnalysisResult(summary="...", key_findings=[...], ...)

Notes: only two conditions are fatal: MalformedEnvelope (no text at either known location) and
UnparsableAnalysis (text is not a JSON object while structured output is required). In best-effort
mode the second case falls back to the free-text heuristics in report_parser.py.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

import report_parser
from errors import MalformedEnvelope, UnparsableAnalysis
from log import preview
from models import (
    STATUS_VALUES,
    AbnormalFinding,
    AnalysisResult,
    BloodTestRow,
    EnvelopeShape,
    KeyFinding,
    LifestyleRecommendation,
    LocatedText,
    Supplement,
    UserMetadata,
)

logger = logging.getLogger(__name__)

# ============================================
# DEFAULT TABLES
# field -> value used when the upstream field is absent, null, blank or of the wrong type
# ============================================

DEFAULT_SUMMARY = report_parser.DEFAULT_SUMMARY
DEFAULT_DISCLAIMER = "Please consult with your healthcare provider for personalized medical advice."

KEY_FINDING_DEFAULTS = {
    "test_name": "Unknown Test",
    "value": "N/A",
    "status": "unknown",
    "description": "No description available",
}

ABNORMAL_FINDING_DEFAULTS = {
    "test_name": "Unknown Test",
    "current_value": "N/A",
    "reference_range": "N/A",
    "significance": "No significance data available",
}

SUPPLEMENT_DEFAULTS = {
    "name": "Unknown Supplement",
    "dosage": "Consult healthcare provider",
    "rationale": "No rationale provided",
}

# category -> label used in the default title / description
LIFESTYLE_CATEGORIES = {
    "diet": "diet",
    "exercise": "exercise",
    "stress_management": "stress management",
    "sleep": "sleep",
}

FENCE_OPEN = re.compile(r"^```[\w+-]*")
FENCE = "```"


# ============================================
# STEP 1: LOCATE TEXT PAYLOAD
# ============================================

def _first(value: Any) -> Optional[Dict[str, Any]]:
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return value[0]
    return None


def locate_text(envelope: Any) -> LocatedText:
    """
    Find the analysis text at outputs[0].outputs[0].results.{message|text}.text.

    Raises:
        MalformedEnvelope: neither location holds a non-blank string
    """
    results = None
    outer = _first(envelope.get("outputs")) if isinstance(envelope, dict) else None
    inner = _first(outer.get("outputs")) if outer else None
    if inner and isinstance(inner.get("results"), dict):
        results = inner["results"]

    if results:
        for shape in (EnvelopeShape.MESSAGE, EnvelopeShape.TEXT):
            container = results.get(shape.value)
            text = container.get("text") if isinstance(container, dict) else None
            if isinstance(text, str) and text.strip():
                logger.info(f"[Normalizer] Found analysis text at results.{shape.value}.text ({len(text)} chars)")
                return LocatedText(shape=shape, text=text)

    logger.error(f"[Normalizer] No analysis text in envelope: {preview(json.dumps(envelope, default=str))}")
    raise MalformedEnvelope("Could not find text content in API response")


# ============================================
# STEP 2 & 3: UNFENCE AND PARSE
# ============================================

def strip_code_fence(text: str) -> str:
    """Remove a ```lang ... ``` wrapper. Idempotent; unfenced text is only trimmed."""
    stripped = text.strip()
    if not stripped.startswith(FENCE):
        return stripped
    stripped = FENCE_OPEN.sub("", stripped, count=1)
    if stripped.endswith(FENCE):
        stripped = stripped[:-len(FENCE)]
    return stripped.strip()


def parse_analysis(text: str) -> Dict[str, Any]:
    """
    Parse unfenced analysis text as a JSON object.

    Raises:
        UnparsableAnalysis: the text is not JSON (including JSON nested past the recursion limit),
            or is JSON but not an object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise UnparsableAnalysis(f"Failed to parse API response: {e.msg}") from e
    except RecursionError as e:
        raise UnparsableAnalysis("Failed to parse API response: document is nested too deeply") from e
    if not isinstance(data, dict):
        raise UnparsableAnalysis(
            f"Failed to parse API response: expected a JSON object, got {type(data).__name__}"
        )
    return data


# ============================================
# STEP 4: FIELD MAPPING WITH DEFAULTS
# ============================================

def _text(value: Any, default: str) -> str:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value
    return default


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _records(value: Any, defaults: Dict[str, str]) -> List[Dict[str, str]]:
    """Apply a default table to every object in a list; non-objects are skipped."""
    if not isinstance(value, list):
        return []
    return [
        {name: _text(item.get(name), default) for name, default in defaults.items()}
        for item in value
        if isinstance(item, dict)
    ]


def _status(value: Any) -> str:
    status = value.strip().lower() if isinstance(value, str) else ""
    return status if status in STATUS_VALUES else KEY_FINDING_DEFAULTS["status"]


def default_lifestyle(category: str) -> LifestyleRecommendation:
    label = LIFESTYLE_CATEGORIES[category]
    return LifestyleRecommendation(
        title=label.title(),
        items=[],
        description=f"No {label} recommendations available",
    )


def _lifestyle(value: Any) -> Dict[str, LifestyleRecommendation]:
    section = _mapping(value)
    recommendations = {}
    for category, label in LIFESTYLE_CATEGORIES.items():
        entry = section.get(category)
        if not isinstance(entry, dict) or not entry:
            recommendations[category] = default_lifestyle(category)
            continue

        items = entry.get("items")
        description = entry.get("description")
        recommendations[category] = LifestyleRecommendation(
            title=_text(entry.get("title"), label.title()),
            items=[item for item in items if isinstance(item, str) and item.strip()]
            if isinstance(items, list) else [],
            description=description if isinstance(description, str) and description.strip() else None,
        )
    return recommendations


def default_lifestyle_recommendations() -> Dict[str, LifestyleRecommendation]:
    return {category: default_lifestyle(category) for category in LIFESTYLE_CATEGORIES}


def map_analysis(data: Dict[str, Any], metadata: UserMetadata, raw_text: str = "") -> AnalysisResult:
    """
    Map the engine's JSON document onto AnalysisResult. Never raises on malformed content.

    raw_text is kept as rawAnalysis when the document is too deep to pretty-print.
    """
    interpretation = _mapping(data.get("blood_report_interpretation"))

    key_findings = []
    for record in _records(interpretation.get("key_findings"), KEY_FINDING_DEFAULTS):
        record["status"] = _status(record["status"])
        key_findings.append(KeyFinding(**record))

    return AnalysisResult(
        user_metadata=metadata,
        summary=_text(interpretation.get("summary"), DEFAULT_SUMMARY),
        key_findings=key_findings,
        abnormal_findings=[
            AbnormalFinding(**record)
            for record in _records(data.get("abnormal_findings"), ABNORMAL_FINDING_DEFAULTS)
        ],
        recommended_supplements=[
            Supplement(**record)
            for record in _records(data.get("recommended_supplements"), SUPPLEMENT_DEFAULTS)
        ],
        lifestyle_recommendations=_lifestyle(data.get("lifestyle_recommendations")),
        disclaimer=_text(data.get("important_disclaimer"), DEFAULT_DISCLAIMER),
        raw_analysis=_pretty(data, raw_text),
    )


def _pretty(data: Dict[str, Any], fallback: str) -> str:
    try:
        return json.dumps(data, indent=2)
    except RecursionError:
        return fallback


# ============================================
# STEP 5: LEGACY FREE-TEXT RESULT
# ============================================

def _significance(row: BloodTestRow) -> str:
    direction = "above" if row.status == "high" else "below"
    return f"Value is {direction} the reference range ({row.normal_range})"


def build_legacy_result(analysis_text: str, metadata: UserMetadata) -> AnalysisResult:
    """Best-effort result from prose; rows, summary and recommendations come from report_parser.py."""
    rows = report_parser.parse_blood_results(analysis_text)
    logger.info(f"[Normalizer] Free-text extraction found {len(rows)} blood test rows")

    return AnalysisResult(
        user_metadata=metadata,
        summary=report_parser.extract_summary(analysis_text),
        key_findings=[
            KeyFinding(
                test_name=row.parameter,
                value=f"{row.value} {row.unit}".strip(),
                status=row.status,
                description=f"Reference range: {row.normal_range}",
            )
            for row in rows
        ],
        abnormal_findings=[
            AbnormalFinding(
                test_name=row.parameter,
                current_value=f"{row.value} {row.unit}".strip(),
                reference_range=row.normal_range,
                significance=_significance(row),
            )
            for row in rows
            if row.status != "normal"
        ],
        recommended_supplements=[],
        lifestyle_recommendations=default_lifestyle_recommendations(),
        disclaimer=DEFAULT_DISCLAIMER,
        raw_analysis=analysis_text,
        blood_results=rows,
        recommendations=report_parser.extract_recommendations(analysis_text),
    )


# ============================================
# MAIN ENTRY POINT
# ============================================

def normalize(envelope: Any, metadata: UserMetadata, require_structured: bool = True) -> AnalysisResult:
    """
    Envelope → AnalysisResult.

    Args:
        envelope: Raw response of the run endpoint
        metadata: The submitting user's details, copied into the result
        require_structured: If False, text that is not a JSON object is scraped as prose
            instead of failing

    Raises:
        MalformedEnvelope: no analysis text in the envelope
        UnparsableAnalysis: text is not a JSON object and require_structured is True
    """
    located = locate_text(envelope)
    unfenced = strip_code_fence(located.text)

    try:
        data = parse_analysis(unfenced)
    except UnparsableAnalysis as e:
        if require_structured:
            logger.error(f"[Normalizer] {e.message}; text starts with: {preview(unfenced)}")
            raise
        logger.warning(f"[Normalizer] {e.message}; falling back to free-text extraction")
        return build_legacy_result(located.text.strip(), metadata)

    logger.info(f"[Normalizer] Parsed structured analysis with keys: {sorted(data)}")
    return map_analysis(data, metadata, raw_text=unfenced)
