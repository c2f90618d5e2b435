"""
ANALYSIS PIPELINE
Orchestrates one blood report analysis from form submission to canonical result.

STEP 1: Upload the PDF to Langflow
STEP 2: Run the flow on the uploaded path
STEP 3: Normalize the envelope into an AnalysisResult

The outcome of a run is an explicit state (IDLE → IN_FLIGHT → SUCCEEDED | FAILED) carrying either the
result or the error, never both and never a partial result.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import json
import logging
import mimetypes
import os
import sys

from errors import HealthLabError
from langflow_client import LangflowClient
from models import AnalysisRequest, AnalysisResult
from normalizer import normalize

logger = logging.getLogger(__name__)


class AnalysisState(Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class InvalidTransition(Exception):
    """An AnalysisOutcome was moved out of order (e.g. succeed() before start())."""


@dataclass
class AnalysisOutcome:
    """State of one analysis; result is set only when SUCCEEDED, error only when FAILED."""
    state: AnalysisState = AnalysisState.IDLE
    result: Optional[AnalysisResult] = None
    error: Optional[HealthLabError] = None

    def start(self) -> "AnalysisOutcome":
        self._require(AnalysisState.IDLE)
        self.state = AnalysisState.IN_FLIGHT
        return self

    def succeed(self, result: AnalysisResult) -> "AnalysisOutcome":
        self._require(AnalysisState.IN_FLIGHT)
        self.state = AnalysisState.SUCCEEDED
        self.result = result
        return self

    def fail(self, error: HealthLabError) -> "AnalysisOutcome":
        self._require(AnalysisState.IN_FLIGHT)
        self.state = AnalysisState.FAILED
        self.error = error
        return self

    @property
    def done(self) -> bool:
        return self.state in (AnalysisState.SUCCEEDED, AnalysisState.FAILED)

    def _require(self, expected: AnalysisState):
        if self.state is not expected:
            raise InvalidTransition(f"Cannot leave state {self.state.value}, expected {expected.value}")


def run_analysis(
    client: LangflowClient,
    request: AnalysisRequest,
    require_structured: bool = True
) -> AnalysisOutcome:
    """
    Upload → run → normalize.

    Args:
        client: Configured Langflow client
        request: The form submission
        require_structured: Passed to normalize(); False enables the free-text fallback

    Returns:
        A SUCCEEDED outcome with the result, or a FAILED outcome with the error
    """
    outcome = AnalysisOutcome().start()
    logger.info(f"📝 Analyzing report {request.filename} ({len(request.content)} bytes)")

    try:
        logger.info("📤 Uploading PDF to Langflow...")
        handle = client.upload(request.filename, request.content, request.content_type)

        logger.info("🤖 Running Langflow analysis...")
        envelope = client.analyze(handle.file_path)

        logger.info("⚙️  Processing results...")
        result = normalize(envelope, request.metadata, require_structured=require_structured)
    except HealthLabError as e:
        logger.error(f"❌ Analysis failed ({type(e).__name__}): {e.message}")
        return outcome.fail(e)

    logger.info(f"✅ Analysis complete: {len(result.key_findings)} key findings, "
                f"{len(result.abnormal_findings)} abnormal")
    return outcome.succeed(result)


def main(argv=None) -> int:
    """Command-line entry: pipeline.py <report.pdf> <name> <age> <health goal> [--best-effort]"""
    from config import load_settings
    from langflow_client import create_client
    from log import configure_logging

    args = list(sys.argv[1:] if argv is None else argv)
    best_effort = "--best-effort" in args
    args = [a for a in args if a != "--best-effort"]
    if len(args) != 4:
        print(main.__doc__, file=sys.stderr)
        return 2

    configure_logging()
    path, name, age, health_goal = args
    with open(path, "rb") as f:
        content = f.read()

    request = AnalysisRequest(
        full_name=name,
        age=age,
        health_goal=health_goal,
        filename=os.path.basename(path),
        content=content,
        content_type=mimetypes.guess_type(path)[0] or "application/pdf",
    )

    try:
        client = create_client(load_settings())
    except HealthLabError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    outcome = run_analysis(client, request, require_structured=not best_effort)
    if outcome.state is AnalysisState.FAILED:
        print(f"Error: {outcome.error.message}", file=sys.stderr)
        return 1

    print(json.dumps(outcome.result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
