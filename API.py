from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as StarletteUploadFile
import uvicorn
import json
from pydantic import BaseModel
from typing import Any, Optional
import logging

from config import Settings, load_cors_origins, load_settings
from errors import HealthLabError, InvalidRequest
from langflow_client import LangflowClient, create_client
from log import configure_logging
from models import AnalysisRequest
from pipeline import AnalysisState, run_analysis
from recommendations import recommend

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="HealthLab Blood Report Analysis API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=load_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RecommendationRequest(BaseModel):
    analysisResult: Any = None


def get_settings() -> Settings:
    return load_settings()


def get_client(settings: Settings = Depends(get_settings)) -> LangflowClient:
    return create_client(settings)


def get_proxy_settings() -> Settings:
    # the proxy names its flow per request
    return load_settings(require_flow_id=False)


def get_proxy_client(settings: Settings = Depends(get_proxy_settings)) -> LangflowClient:
    return create_client(settings)


@app.exception_handler(HealthLabError)
async def healthlab_error_handler(request: Request, exc: HealthLabError):
    """Every failure leaves the API as a single {"error": ...} message."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    # drop the location kind ("body", "query") and list indexes
    field = ".".join(part for part in first.get("loc", ())[1:] if isinstance(part, str))
    reason = first.get("msg", "malformed request")
    message = f"Invalid request: {field}: {reason}" if field else f"Invalid request: {reason}"
    logger.warning(f"[API] {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"error": message})


def _is_pdf(upload: UploadFile) -> bool:
    return upload.content_type == "application/pdf" or (upload.filename or "").lower().endswith(".pdf")


@app.post("/analyze-report")
def analyze_report(
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    age: Optional[str] = Form(None),
    healthGoal: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    best_effort: bool = False,
    client: LangflowClient = Depends(get_client),
):
    """
    Analyze an uploaded blood report.

    Workflow:
    1. Validate the form (file, name, age and a health goal or gender)
    2. Upload the PDF to Langflow
    3. Run the flow on the uploaded path
    4. Normalize the response into the canonical result

    best_effort=true accepts prose answers from the flow and scrapes them instead of failing.
    """
    if file is None or not (name or "").strip() or not (age or "").strip() \
            or not ((healthGoal or "").strip() or (gender or "").strip()):
        raise InvalidRequest("Missing required fields")
    if not _is_pdf(file):
        raise InvalidRequest("Please select a valid PDF file")

    logger.info(f"📝 Report received from {name.strip()}: {file.filename}")

    request = AnalysisRequest(
        full_name=name.strip(),
        age=age.strip(),
        health_goal=healthGoal.strip() if healthGoal and healthGoal.strip() else None,
        gender=gender.strip() if gender and gender.strip() else None,
        filename=file.filename or "report.pdf",
        content=file.file.read(),
        content_type=file.content_type or "application/pdf",
    )

    outcome = run_analysis(client, request, require_structured=not best_effort)
    if outcome.state is AnalysisState.FAILED:
        raise outcome.error
    return outcome.result.to_dict()


@app.post("/langflow-proxy")
async def langflow_proxy(
    request: Request,
    action: Optional[str] = None,
    flowId: Optional[str] = None,
    client: LangflowClient = Depends(get_proxy_client),
):
    """
    Pass-through to the Langflow upload/run endpoints.

    ?action=upload  multipart form with "file"  → {"file_path": ...}
    ?action=analyze JSON run payload            → raw Langflow envelope
    """
    if not flowId:
        raise InvalidRequest("Flow ID is required")

    if action == "upload":
        form = await request.form()
        upload = form.get("file")
        if not isinstance(upload, StarletteUploadFile):
            raise InvalidRequest("Missing file")
        content = await upload.read()
        logger.info(f"[Proxy] Uploading {upload.filename} to flow {flowId}")
        handle = await run_in_threadpool(
            client.upload,
            upload.filename or "upload",
            content,
            upload.content_type or "application/octet-stream",
            flowId,
        )
        return {"file_path": handle.file_path}

    if action == "analyze":
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            raise InvalidRequest("Request body must be valid JSON")
        if not isinstance(payload, dict):
            raise InvalidRequest("Request body must be a JSON object")
        logger.info(f"[Proxy] Running flow {flowId}")
        return await run_in_threadpool(client.run, payload, flowId)

    raise InvalidRequest("Invalid action. Use 'upload' or 'analyze'")


@app.post("/recommendations")
async def recommendations(body: RecommendationRequest):
    """Mock product recommendations for a finished analysis."""
    if body.analysisResult is None:
        raise InvalidRequest("Missing analysis result")

    products = await recommend(body.analysisResult)
    return {"products": [product.to_dict() for product in products]}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "HealthLab Blood Report Analysis API"}


if __name__ == "__main__":
    uvicorn.run(
        "API:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
