import pytest

from report_parser import (
    DEFAULT_SUMMARY,
    determine_status,
    extract_recommendations,
    extract_summary,
    parse_blood_results,
)


def test_single_row():
    rows = parse_blood_results("Glucose: 92 mg/dl (70-100)")

    assert [row.to_dict() for row in rows] == [{
        "parameter": "Glucose",
        "value": "92",
        "unit": "mg/dl",
        "normalRange": "70-100",
        "status": "normal",
    }]


def test_rows_skip_other_layouts():
    text = "\n".join([
        "Patient: Jane Doe",
        "Hemoglobin: 13.5 g/dL (Normal: 13.5-17.5)",
        "LDL = 154 mg/dl [0-99]",
        "Platelets: 250 (150-400)",
        "",
    ])

    rows = parse_blood_results(text)

    assert [(r.parameter, r.value, r.unit, r.normal_range) for r in rows] == [
        ("Hemoglobin", "13.5", "g/dL", "Normal: 13.5-17.5"),
        ("Platelets", "250", "", "150-400"),
    ]


def test_no_rows_in_unrecognized_prose():
    assert parse_blood_results("Your results look good overall.") == []


@pytest.mark.parametrize("value, normal_range, expected", [
    ("118", "70-100", "high"),
    ("92", "70-100", "normal"),
    ("65", "70-100", "low"),
    ("70", "70-100", "normal"),
    ("100", "70-100", "normal"),
    ("0.81", "0.6-1.3", "normal"),
    ("0.8", ".5-1.0", "normal"),
    ("0.4", ".5-1.0", "low"),
    ("92", "< 100", "normal"),
    ("92", "", "normal"),
    ("n/a", "70-100", "normal"),
])
def test_determine_status(value, normal_range, expected):
    assert determine_status(value, normal_range) == expected


def test_summary_line_and_continuation():
    text = "Intro line\n\nSUMMARY: Kidney function is good.\nLipids are high.\n\nDetails follow."

    assert extract_summary(text) == "Kidney function is good.\nLipids are high."


def test_summary_heading_on_its_own_line():
    text = "Report\n\nSummary\nAll values in range.\n\nEnd"

    assert extract_summary(text) == "All values in range."


def test_summary_falls_back_to_first_paragraph():
    text = "\n\nThe report looks stable.\nNo urgent issues.\n\nGlucose: 92 mg/dl (70-100)"

    assert extract_summary(text) == "The report looks stable.\nNo urgent issues."


def test_summary_default_for_blank_text():
    assert extract_summary("  \n\n ") == DEFAULT_SUMMARY


def test_recommendations_strip_bullets_and_run_to_end():
    text = "\n".join([
        "Glucose: 92 mg/dl (70-100)",
        "Our recommendations:",
        "",
        "1) Drink more water",
        "  * Sleep 8 hours",
        "2. Recheck in 6 months",
        "",
        "Thank you for using HealthLab",
    ])

    assert extract_recommendations(text) == [
        "Drink more water",
        "Sleep 8 hours",
        "Recheck in 6 months",
        "Thank you for using HealthLab",
    ]


def test_no_recommendations_header():
    assert extract_recommendations("- Drink more water\n- Sleep") == []


def test_recommendations_keep_leading_quantities():
    text = "\n".join([
        "Recommendations:",
        "30 minutes of walking daily",
        "10,000 steps per day",
        "- 1.5 L of water per day",
        "2. Recheck",
        "• 3) Retest ferritin",
    ])

    assert extract_recommendations(text) == [
        "30 minutes of walking daily",
        "10,000 steps per day",
        "1.5 L of water per day",
        "Recheck",
        "Retest ferritin",
    ]
