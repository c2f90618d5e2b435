"""
Parse free-text analysis into blood-test rows, a summary and a recommendations list

Purpose: best-effort fallback for flows that answer in prose instead of the structured JSON document.

Input: the analysis text found in the engine response.

Output: [BloodTestRow, ...], a summary string, a list of recommendation strings.

Example: "Glucose: 92 mg/dl (70-100)" → BloodTestRow(parameter="Glucose", value="92", unit="mg/dl",
normal_range="70-100", status="normal")

Notes: only the layout `label: value unit (range)` is recognized; any other layout yields no rows.
The recommendations scan has no terminator and runs until the end of the text.
"""
import re
from typing import List

from models import BloodTestRow

DEFAULT_SUMMARY = "Analysis completed successfully."

ROW_PATTERN = re.compile(r"([A-Za-z\s]+):\s*(\d+(?:\.\d+)?)\s*([^(]*?)\s*\(([^)]+)\)")
RANGE_PATTERN = re.compile(r"(\d*\.?\d+)-(\d*\.?\d+)")
SUMMARY_HEADER = re.compile(r"^summary\b\s*:?\s*", re.IGNORECASE)
# "-", "*", "•" or a number followed by "." or ")"; a decimal like "1.5" is not a marker
BULLET_PREFIX = re.compile(r"^\s*(?:(?:[-*•]|\d+[.)](?!\d))\s*)*")


def parse_blood_results(analysis_text: str) -> List[BloodTestRow]:
    results = []
    for line in analysis_text.splitlines():
        match = ROW_PATTERN.search(line)
        if not match:
            continue
        parameter, value, unit, normal_range = (part.strip() for part in match.groups())
        if not parameter:
            continue
        results.append(BloodTestRow(
            parameter=parameter,
            value=value,
            unit=unit,
            normal_range=normal_range,
            status=determine_status(value, normal_range),
        ))
    return results


def determine_status(value: str, normal_range: str) -> str:
    """
    Compare a value against a 'min-max' range.

    Returns "low", "high" or "normal". A range that does not parse (or a value that is not a
    number) gives "normal": that is a default, not evidence that the value is in range.
    """
    match = RANGE_PATTERN.search(normal_range or "")
    if not match:
        return "normal"
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "normal"

    low, high = float(match.group(1)), float(match.group(2))
    if number < low:
        return "low"
    if number > high:
        return "high"
    return "normal"


def extract_summary(analysis_text: str) -> str:
    lines = analysis_text.splitlines()
    for index, line in enumerate(lines):
        stripped = line.strip()
        header = SUMMARY_HEADER.match(stripped)
        if not header:
            continue

        collected = []
        first = stripped[header.end():].strip()
        if first:
            collected.append(first)
        # a bare "Summary:" heading may be followed by its text on the next line
        rest = lines[index + 1:]
        if not first:
            while rest and not rest[0].strip():
                rest = rest[1:]
        for following in rest:
            if not following.strip():
                break
            collected.append(following.strip())

        summary = "\n".join(collected).strip()
        if summary:
            return summary
        break

    for paragraph in re.split(r"\n\s*\n", analysis_text):
        if paragraph.strip():
            return paragraph.strip()
    return DEFAULT_SUMMARY


def extract_recommendations(analysis_text: str) -> List[str]:
    recommendations = []
    in_recommendations = False

    for line in analysis_text.splitlines():
        if not in_recommendations:
            if "recommendation" in line.lower():
                in_recommendations = True
            continue

        if not line.strip():
            continue
        cleaned = BULLET_PREFIX.sub("", line).strip()
        if cleaned:
            recommendations.append(cleaned)

    return recommendations
