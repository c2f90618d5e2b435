import json

import pytest

from config import Settings
from models import UserMetadata


SAMPLE_ANALYSIS = {
    "blood_report_interpretation": {
        "summary": "The patient's blood report indicates generally stable health, with a few areas of "
                   "concern related to lipid levels and bilirubin.",
        "key_findings": [
            {
                "test_name": "glucose",
                "value": "92 mg/dl",
                "status": "normal",
                "description": "Glucose level is within the normal range.",
            },
            {
                "test_name": "ldl",
                "value": "154 mg/dl",
                "status": "high",
                "description": "LDL cholesterol level is significantly elevated.",
            },
        ],
    },
    "abnormal_findings": [
        {
            "test_name": "ldl",
            "current_value": "154 mg/dl",
            "reference_range": "0-99 mg/dl",
            "significance": "Significantly elevated, indicating higher risk for heart disease.",
        },
    ],
    "recommended_supplements": [
        {
            "name": "Omega-3 Fish Oil",
            "dosage": "1000 mg daily",
            "rationale": "May help lower LDL cholesterol and improve heart health.",
        },
    ],
    "lifestyle_recommendations": {
        "diet": {
            "title": "Dietary Suggestions",
            "items": ["Increase intake of fruits and vegetables.", "Limit saturated fats and trans fats."],
        },
        "exercise": {
            "title": "Exercise Recommendations",
            "items": ["Aim for at least 150 minutes of moderate aerobic activity per week."],
        },
        "stress_management": {
            "title": "Stress Management Techniques",
            "description": "Practice mindfulness, meditation, or yoga to reduce stress levels.",
        },
        "sleep": {
            "title": "Sleep Hygiene Tips",
            "items": ["Aim for 7-9 hours of quality sleep each night."],
        },
    },
    "important_disclaimer": "This report is for informational purposes only.",
}

PROSE_ANALYSIS = """Blood Test Analysis

Glucose: 92 mg/dl (70-100)
Cholesterol: 223 mg/dl (100-199)
Hemoglobin: 11.2 g/dL (Normal: 13.5-17.5)
Vitamin D: low, supplement advised

Summary: Most values are within range.
Cholesterol is elevated and hemoglobin is low.

Recommendations:
1. Reduce saturated fat intake
- Walk 30 minutes daily
• Recheck lipids in 3 months
"""


def text_envelope(text):
    """Envelope shape used by flows that answer with a (fenced) JSON document."""
    return {"outputs": [{"outputs": [{"results": {"text": {"text": text}}}]}]}


def message_envelope(text):
    """Envelope shape used by chat flows that answer with prose."""
    return {"outputs": [{"outputs": [{"results": {"message": {"text": text}}}]}]}


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None, reason="OK"):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(body)
        self.reason = reason

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Stands in for requests.Session; replies (or raises) in order and records every call."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def settings():
    return Settings(langflow_url="http://langflow.test", flow_id="flow-123", api_key="sk-test")


@pytest.fixture
def metadata():
    return UserMetadata(full_name="Jane Doe", age="42", health_goal="Lower cholesterol")


@pytest.fixture
def sample_analysis():
    return json.loads(json.dumps(SAMPLE_ANALYSIS))
