from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, Dict, NoReturn

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from kg_canvas.api.models import (
    ChatResponse,
    DocumentResponse,
    ExpansionResponse,
    HealthResponse,
    LayoutRequest,
    PaperCreated,
    PaperCreateRequest,
    PaperSearchRequest,
    PaperSearchResult,
    RelateRequest,
    RelationshipQuestion,
    RelationshipResponse,
    SummaryUpdate,
)
from kg_canvas.canvas import CanvasController, Outcome, OutcomeStatus, RelationshipOutcome
from kg_canvas.graph.export import to_payload
from kg_canvas.llm.client import OllamaClient
from kg_canvas.relationships.chat import ChatMessage
from kg_canvas.sources.pdf import PdfExtractionError, extract_document

logger = logging.getLogger("kg_canvas.web")
logging.basicConfig(level=logging.INFO)


# -------------------------------------------------------------------
# Lifespan: one canvas per process
# -------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup/shutdown handler:
    - Create the canvas controller with its default collaborators
    - Keep a language-model client around for health checks

    The canvas lives in memory only; nothing is persisted between runs.
    """
    if getattr(app.state, "controller", None) is None:
        app.state.controller = CanvasController()
    if getattr(app.state, "llm_client", None) is None:
        app.state.llm_client = OllamaClient()
    logger.info("Canvas ready")

    yield


app = FastAPI(
    title="Paper Relationship Canvas API",
    description="Build a canvas of papers, expand them into concepts and classify how they relate.",
    version="0.1.0",
    lifespan=lifespan,
)

# -------------------------------------------------------------------
# CORS – the canvas front end runs on its own origin
# -------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log method, path, and response status.
    """
    logger.info(f"Incoming request: {request.method} {request.url.path}")
    start = time.time()

    response = await call_next(request)

    duration_ms = (time.time() - start) * 1000
    logger.info(
        f"Completed {request.method} {request.url.path} "
        f"with status {response.status_code} in {duration_ms:.2f}ms"
    )

    return response


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

_STATUS_CODES = {
    OutcomeStatus.INVALID: 400,
    OutcomeStatus.NOT_FOUND: 404,
    OutcomeStatus.BUSY: 409,
}


def _get_controller(app_obj: FastAPI) -> CanvasController:
    """
    Fetch the canvas controller from app.state, initializing if needed.
    """
    controller = getattr(app_obj.state, "controller", None)
    if controller is None:
        controller = CanvasController()
        app_obj.state.controller = controller
    return controller


def _get_llm_client(app_obj: FastAPI) -> OllamaClient:
    client = getattr(app_obj.state, "llm_client", None)
    if client is None:
        client = OllamaClient()
        app_obj.state.llm_client = client
    return client


def _reject(outcome: Outcome) -> NoReturn:
    raise HTTPException(
        status_code=_STATUS_CODES.get(outcome.status, 400),
        detail=outcome.reason or outcome.status.value,
    )


def _relationship_response(outcome: RelationshipOutcome) -> RelationshipResponse:
    if not outcome.ok:
        _reject(outcome)
    return RelationshipResponse(
        edge_id=outcome.edge_id,
        relationship=outcome.relationship,
        citation_chunks_found=outcome.citation_chunks_found,
    )


# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse, summary="Health check")
async def health(request: Request, check_llm: bool = False) -> HealthResponse:
    """
    Simple health check endpoint. With `check_llm=true` the language-model
    server is probed as well (never fails the request).
    """
    if not check_llm:
        return HealthResponse(status="ok")

    client = _get_llm_client(request.app)
    available = await run_in_threadpool(client.check_connection)
    models = await run_in_threadpool(client.list_models) if available else []
    return HealthResponse(status="ok", llm_available=available, llm_models=models)


@app.get("/graph", response_model=Dict[str, Any], summary="Current canvas nodes and edges")
async def get_graph(request: Request) -> Dict[str, Any]:
    return to_payload(_get_controller(request.app).state)


@app.post("/graph/layout", response_model=Dict[str, Any], summary="Recompute the layered layout")
async def relayout(payload: LayoutRequest, request: Request) -> Dict[str, Any]:
    controller = _get_controller(request.app)
    return to_payload(controller.relayout(payload.direction))


@app.post("/papers", response_model=PaperCreated, status_code=201, summary="Add a paper node")
async def add_paper(payload: PaperCreateRequest, request: Request) -> PaperCreated:
    """
    Add a paper to the canvas.

    Unless a bibliographic id is supplied (or `lookup` is false), the title is
    searched first to fill in authors, year and id. A failed search does not
    block the add.
    """
    controller = _get_controller(request.app)

    if payload.lookup and not payload.paper_id:
        outcome = await controller.add_paper_with_lookup(
            payload.title, payload.summary, full_text=payload.full_text
        )
    else:
        outcome = controller.add_paper(
            payload.title,
            payload.summary,
            authors=payload.authors,
            year=payload.year,
            paper_id=payload.paper_id,
            full_text=payload.full_text,
        )

    if not outcome.ok:
        _reject(outcome)
    return PaperCreated(node_id=outcome.node_id)


@app.put("/papers/{node_id}/summary", response_model=PaperCreated, summary="Replace a paper summary")
async def update_summary(node_id: str, payload: SummaryUpdate, request: Request) -> PaperCreated:
    outcome = _get_controller(request.app).update_summary(node_id, payload.summary)
    if not outcome.ok:
        _reject(outcome)
    return PaperCreated(node_id=node_id)


@app.post("/papers/search", response_model=PaperSearchResult, summary="Search the bibliographic service")
async def search_paper(payload: PaperSearchRequest, request: Request) -> PaperSearchResult:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query is required")

    controller = _get_controller(request.app)
    record = await run_in_threadpool(controller.bibliography.search_paper, query)
    if record is None:
        raise HTTPException(status_code=404, detail="Paper not found")
    return PaperSearchResult(**asdict(record))


@app.post(
    "/papers/{node_id}/expand",
    response_model=ExpansionResponse,
    summary="Expand a paper into concepts and citations",
)
async def expand_paper(node_id: str, request: Request) -> ExpansionResponse:
    """
    - 404 if the node does not exist
    - 400 if it is not a paper
    - 409 while an expansion of the same node is still running
    """
    outcome = await _get_controller(request.app).expand_paper(node_id)
    if not outcome.ok:
        _reject(outcome)
    return ExpansionResponse(
        node_id=node_id,
        concept_count=outcome.concept_count,
        citation_count=outcome.citation_count,
    )


@app.post(
    "/relationships",
    response_model=RelationshipResponse,
    summary="Connect two papers and classify their relationship",
)
async def relate_papers(payload: RelateRequest, request: Request) -> RelationshipResponse:
    outcome = await _get_controller(request.app).relate_papers(payload.source_id, payload.target_id)
    return _relationship_response(outcome)


@app.post(
    "/edges/{edge_id}/analyze",
    response_model=RelationshipResponse,
    summary="Re-run relationship analysis on an existing edge",
)
async def analyze_edge(edge_id: str, request: Request) -> RelationshipResponse:
    outcome = await _get_controller(request.app).analyze_edge(edge_id)
    return _relationship_response(outcome)


@app.post("/relationships/chat", response_model=ChatResponse, summary="Ask about a relationship")
async def ask_about_relationship(payload: RelationshipQuestion, request: Request) -> ChatResponse:
    history = [ChatMessage(role=turn.role, content=turn.content) for turn in payload.history]
    outcome = await _get_controller(request.app).ask_about_edge(
        payload.edge_id, payload.question, history
    )
    if not outcome.ok:
        _reject(outcome)
    return ChatResponse(answer=outcome.answer)


@app.post(
    "/documents/extract",
    response_model=DocumentResponse,
    summary="Extract title, summary and text from an uploaded PDF",
)
async def extract_pdf(file: UploadFile = File(..., description="PDF file to extract")) -> DocumentResponse:
    filename = file.filename or "document.pdf"
    if not filename.lower().endswith(".pdf") and file.content_type != "application/pdf":
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    try:
        document = await run_in_threadpool(extract_document, content, filename)
    except PdfExtractionError as exc:
        logger.warning("PDF extraction failed for %s: %s", filename, exc)
        raise HTTPException(status_code=400, detail=str(exc))

    return DocumentResponse(**asdict(document))
