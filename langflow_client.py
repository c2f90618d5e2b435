"""
LANGFLOW CLIENT - UPSTREAM ANALYSIS CALLS
Talks to the external Langflow workflow engine that interprets blood reports.

STEP 1: Upload
- POST {base}/api/v1/upload/{flow_id} (multipart "file")
- Returns the server-side file path

STEP 2: Run
- POST {base}/api/v1/run/{flow_id} with tweaks pointing the flow's File component at that path
- Returns the raw response envelope (normalized later by normalizer.py)

Every call is bounded by its own timeout and is never retried. requests exceptions are translated
into the errors.py taxonomy here, so callers only ever see HealthLabError subclasses.
"""

from typing import Any, Dict, Optional
import logging

import requests

from config import Settings
from errors import NetworkError, UpstreamError, UpstreamTimeout
from log import preview
from models import UploadHandle

logger = logging.getLogger(__name__)


class LangflowClient:
    """Client for the two Langflow endpoints used by the analyzer."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.base_url = settings.langflow_url.rstrip("/")
        self.session = session or requests.Session()

        logger.info(f"[Langflow] Client for {self.base_url} (flow {settings.flow_id})")
        logger.info(f"[Langflow] API Key set: {bool(settings.api_key)}")

    # ═════════════════════════════════════════════════════════════
    # PUBLIC CALLS
    # ═════════════════════════════════════════════════════════════

    def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str = "application/pdf",
        flow_id: Optional[str] = None
    ) -> UploadHandle:
        """
        STEP 1: Upload the report file to the engine.

        Args:
            filename: Original file name, forwarded to Langflow
            content: Raw file bytes
            content_type: MIME type of the file
            flow_id: Overrides the configured flow

        Returns:
            UploadHandle with the server-side file path
        """
        url = f"{self.base_url}/api/v1/upload/{flow_id or self.settings.flow_id}"
        logger.info(f"[Langflow] Uploading {filename} ({len(content)} bytes) to {url}")

        response = self._post(
            "upload",
            url,
            timeout=self.settings.upload_timeout,
            files={"file": (filename, content, content_type)},
        )
        data = self._json_body("upload", response)

        file_path = data.get("file_path") if isinstance(data, dict) else None
        if not file_path:
            raise UpstreamError(
                f"Invalid response from upload endpoint: {response.text[:200]}",
                upstream_status=response.status_code,
            )

        logger.info(f"[Langflow] File uploaded successfully: {file_path}")
        return UploadHandle(file_path=file_path)

    def analyze(
        self,
        file_path: str,
        tweaks: Optional[Dict[str, Any]] = None,
        flow_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        STEP 2: Run the flow against a previously uploaded file.

        Args:
            file_path: Path returned by upload()
            tweaks: Extra component tweaks merged next to the File component tweak
            flow_id: Overrides the configured flow

        Returns:
            The raw response envelope
        """
        payload_tweaks = {self.settings.file_component_id: {"path": [file_path]}}
        if tweaks:
            payload_tweaks.update(tweaks)
        return self.run({"tweaks": payload_tweaks}, flow_id=flow_id)

    def run(self, payload: Dict[str, Any], flow_id: Optional[str] = None) -> Dict[str, Any]:
        """POST an arbitrary run payload (tweaks and/or input_value) and return the envelope."""
        url = f"{self.base_url}/api/v1/run/{flow_id or self.settings.flow_id}"
        logger.info(f"[Langflow] Running analysis at {url}")
        logger.debug(f"[Langflow] Analysis payload keys: {sorted(payload)}")

        response = self._post(
            "analysis",
            url,
            timeout=self.settings.analyze_timeout,
            json=payload,
            params={"stream": "false"},
        )
        envelope = self._json_body("analysis", response)
        logger.info("[Langflow] Analysis completed successfully")
        return envelope

    # ═════════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═════════════════════════════════════════════════════════════

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.settings.api_key,
            "Authorization": f"Bearer {self.settings.api_key}",
        }

    def _post(self, step: str, url: str, timeout: float, **kwargs) -> requests.Response:
        """
        Single POST with timeout; translates transport failures and non-2xx answers.

        `timeout` is handed to requests as is, so it bounds the connect phase and each socket read
        separately rather than the whole call. A server that trickles bytes can keep one call open past
        `timeout`; the worst case for a stalled connect followed by a stalled read is about twice the value.
        """
        try:
            response = self.session.post(url, headers=self._headers(), timeout=timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            # ConnectTimeout is also a ConnectionError; it is still a timeout for the caller
            logger.error(f"[Langflow] {step.capitalize()} timeout after {timeout}s: {e}")
            raise UpstreamTimeout(
                f"{step.capitalize()} timeout: Langflow server took too long to respond"
            ) from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"[Langflow] Connection error during {step}: {e}")
            raise NetworkError(
                f"Failed to connect to Langflow: {e}. Please ensure Langflow is running at {self.base_url}"
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"[Langflow] Request error during {step}: {e}")
            raise NetworkError(f"Network error: {e}") from e

        logger.info(f"[Langflow] {step.capitalize()} response status: {response.status_code}")

        if not response.ok:
            logger.error(f"[Langflow] {step.capitalize()} failed: {preview(response.text)}")
            raise UpstreamError(
                f"{step.capitalize()} failed ({response.status_code}): {error_message(response)}",
                upstream_status=response.status_code,
            )
        return response

    def _json_body(self, step: str, response: requests.Response) -> Any:
        try:
            return response.json()
        except (ValueError, RecursionError):
            logger.error(f"[Langflow] Failed to parse {step} response as JSON: {preview(response.text)}")
            raise UpstreamError(
                f"Invalid response from {step} endpoint: {response.text[:200]}",
                upstream_status=response.status_code,
            )


def error_message(response: requests.Response) -> str:
    """
    Human-readable message for a failed engine response.

    JSON bodies contribute their `detail` (or `error` / `message`) field. Whatever is returned is cut to
    the first 200 characters so a full server stack trace or validation dump never reaches the user.
    """
    text = response.text or ""
    try:
        data = response.json()
    except ValueError:
        return text[:200] or (response.reason or "Unknown error")

    if isinstance(data, dict):
        for key in ("detail", "error", "message"):
            value = data.get(key)
            if value:
                if isinstance(value, dict):
                    value = value.get("message") or value
                return str(value)[:200]
    return text[:200]


def create_client(settings: Settings) -> LangflowClient:
    """Create and return a LangflowClient instance."""
    return LangflowClient(settings)
