"""
Central configuration

Purpose: single source of truth for the Langflow connection settings, timeouts and default params.

Input: environment variables (optionally from a .env file next to this module).

Output: a Settings object used by the client, the pipeline and the API.

Example: LANGFLOW_URL=http://localhost:7860 LANGFLOW_FLOW_ID=76e6... LANGFLOW_API_KEY=sk-... → Settings(...)

Notes: missing required settings raise ConfigurationError before any network call is attempted.
"""
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

from errors import ConfigurationError

env_path = os.path.join(os.path.dirname(__file__), '.env')
load_dotenv(dotenv_path=env_path)

UPLOAD_TIMEOUT = 30.0      # seconds
ANALYZE_TIMEOUT = 60.0     # seconds
FILE_COMPONENT_ID = "File-6kS21"   # File component of the flow that receives the uploaded path
RECOMMENDATION_DELAY = 1.5  # simulated latency of the product catalog
ERROR_PREVIEW_CHARS = 200

REQUIRED_VARS = ("LANGFLOW_URL", "LANGFLOW_FLOW_ID", "LANGFLOW_API_KEY")


@dataclass
class Settings:
    """Connection settings for the Langflow engine."""
    langflow_url: str
    flow_id: str
    api_key: str
    file_component_id: str = FILE_COMPONENT_ID
    upload_timeout: float = UPLOAD_TIMEOUT
    analyze_timeout: float = ANALYZE_TIMEOUT
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def load_settings(require_flow_id: bool = True) -> Settings:
    """
    Read settings from the environment.

    Args:
        require_flow_id: False for callers that name the flow per request (the proxy); flow_id is
            then "" when LANGFLOW_FLOW_ID is unset

    Raises:
        ConfigurationError: if LANGFLOW_URL, LANGFLOW_FLOW_ID or LANGFLOW_API_KEY is missing
    """
    required = REQUIRED_VARS if require_flow_id else tuple(v for v in REQUIRED_VARS if v != "LANGFLOW_FLOW_ID")
    values = {name: (os.getenv(name) or "").strip() for name in REQUIRED_VARS}
    missing = [name for name in required if not values[name]]
    if missing:
        raise ConfigurationError(
            "Langflow configuration missing. Please set "
            + ", ".join(missing)
            + " environment variable" + ("s." if len(missing) > 1 else ".")
        )

    return Settings(
        langflow_url=values["LANGFLOW_URL"].rstrip("/"),
        flow_id=values["LANGFLOW_FLOW_ID"],
        api_key=values["LANGFLOW_API_KEY"],
        file_component_id=os.getenv("LANGFLOW_FILE_COMPONENT_ID") or FILE_COMPONENT_ID,
        upload_timeout=_float_env("LANGFLOW_UPLOAD_TIMEOUT", UPLOAD_TIMEOUT),
        analyze_timeout=_float_env("LANGFLOW_ANALYZE_TIMEOUT", ANALYZE_TIMEOUT),
        cors_origins=load_cors_origins(),
    )


def load_cors_origins() -> List[str]:
    """Allowed CORS origins from CORS_ORIGINS (comma separated), '*' when unset."""
    origins = os.getenv("CORS_ORIGINS") or "*"
    return [o.strip() for o in origins.split(",") if o.strip()]
