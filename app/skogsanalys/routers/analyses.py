"""
Router for running analyzers on an already extracted property record.
"""

import logging

from fastapi import APIRouter

from ..analysis import list_analyzer_names, run_analyzers, run_summary
from ..models import (
    AnalyzeRequest,
    AnalyzeResponse,
    AnalyzerListResponse,
    SummaryRequest,
    SummaryResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["analyses"])


@router.get("/analyzers", response_model=AnalyzerListResponse)
async def list_analyzers() -> AnalyzerListResponse:
    """List the analyzer names accepted in ``analyses``."""
    return AnalyzerListResponse(analyzers=list_analyzer_names())


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(request: AnalyzeRequest) -> AnalyzeResponse:
    """Run the requested analyzers on the supplied base data."""
    results = run_analyzers(request.analyses, request.base_data, request.options)
    return AnalyzeResponse(analyses=results)


@router.post("/summary", response_model=SummaryResult)
async def summarize(request: SummaryRequest) -> SummaryResult:
    """Run the summary analyzer on the supplied base data."""
    return run_summary(request.base_data, request.options)
