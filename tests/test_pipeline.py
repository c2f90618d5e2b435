import json

import pytest
import requests

from conftest import FakeResponse, FakeSession, PROSE_ANALYSIS, message_envelope, text_envelope
from errors import MalformedEnvelope, UnparsableAnalysis, UpstreamError, UpstreamTimeout
from langflow_client import LangflowClient
from models import AnalysisRequest
from pipeline import AnalysisOutcome, AnalysisState, InvalidTransition, run_analysis


@pytest.fixture
def report():
    return AnalysisRequest(
        full_name="Jane Doe",
        age="42",
        gender="female",
        filename="BR1.pdf",
        content=b"%PDF-1.4 test",
    )


def _client(settings, *replies):
    session = FakeSession(*replies)
    return LangflowClient(settings, session=session), session


def test_successful_run(settings, report, sample_analysis):
    client, session = _client(
        settings,
        FakeResponse(body={"file_path": "flow-123/BR1.pdf"}),
        FakeResponse(body=text_envelope("```json\n" + json.dumps(sample_analysis) + "\n```")),
    )

    outcome = run_analysis(client, report)

    assert outcome.state is AnalysisState.SUCCEEDED
    assert outcome.error is None
    assert outcome.result.user_metadata.to_dict() == {"fullName": "Jane Doe", "age": "42", "gender": "female"}
    assert len(outcome.result.key_findings) == 2
    assert session.calls[1]["json"]["tweaks"]["File-6kS21"] == {"path": ["flow-123/BR1.pdf"]}


def test_upload_failure_stops_before_analysis(settings, report):
    client, session = _client(settings, FakeResponse(status_code=401, body={"detail": "Invalid API key"}))

    outcome = run_analysis(client, report)

    assert outcome.state is AnalysisState.FAILED
    assert outcome.result is None
    assert isinstance(outcome.error, UpstreamError)
    assert len(session.calls) == 1


def test_timeout_outcome(settings, report):
    client, _ = _client(
        settings,
        FakeResponse(body={"file_path": "flow-123/BR1.pdf"}),
        requests.exceptions.ReadTimeout(),
    )

    outcome = run_analysis(client, report)

    assert outcome.state is AnalysisState.FAILED
    assert isinstance(outcome.error, UpstreamTimeout)


def test_malformed_envelope_has_no_partial_result(settings, report):
    client, _ = _client(
        settings,
        FakeResponse(body={"file_path": "flow-123/BR1.pdf"}),
        FakeResponse(body={"outputs": [{"outputs": [{"results": {}}]}]}),
    )

    outcome = run_analysis(client, report)

    assert outcome.state is AnalysisState.FAILED
    assert isinstance(outcome.error, MalformedEnvelope)
    assert outcome.result is None


def test_structured_and_best_effort_modes(settings, report):
    replies = (FakeResponse(body={"file_path": "p"}), FakeResponse(body=message_envelope(PROSE_ANALYSIS)))

    strict = run_analysis(_client(settings, *replies)[0], report)
    lenient = run_analysis(_client(settings, *replies)[0], report, require_structured=False)

    assert isinstance(strict.error, UnparsableAnalysis)
    assert lenient.state is AnalysisState.SUCCEEDED
    assert len(lenient.result.blood_results) == 3


def test_outcome_transitions():
    outcome = AnalysisOutcome()
    assert outcome.state is AnalysisState.IDLE and not outcome.done

    with pytest.raises(InvalidTransition):
        outcome.fail(UpstreamError("x"))

    outcome.start()
    assert outcome.state is AnalysisState.IN_FLIGHT

    with pytest.raises(InvalidTransition):
        outcome.start()

    outcome.fail(UpstreamError("boom"))
    assert outcome.done

    with pytest.raises(InvalidTransition):
        outcome.succeed(None)
    assert outcome.result is None
