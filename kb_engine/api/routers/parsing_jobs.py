"""
Parsing job API endpoints.

Routes:
    POST /parsing-jobs            (multipart upload, returns 201 immediately)
    POST /parsing-jobs/estimate   (multipart upload, no charge)
    GET  /parsing-jobs
    GET  /parsing-jobs/{job_id}

Clients poll GET /parsing-jobs/{job_id} until status is COMPLETED or FAILED.

Dependencies: fastapi, python-multipart, kb_engine.application.services
System role: Parsing job HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from kb_engine.api.deps import get_current_account_id, get_parsing_job_service
from kb_engine.api.routers.router_utils import to_http_exception
from kb_engine.application.services import ParsingJobService
from kb_engine.core.exceptions import KnowledgeEngineException
from kb_engine.models.parsing_job import (
    CostEstimate,
    ParsingJobList,
    ParsingJobStatusResponse,
    ParsingJobSubmission,
)

router = APIRouter(prefix="/parsing-jobs", tags=["parsing-jobs"])


@router.post("", response_model=ParsingJobSubmission, status_code=status.HTTP_201_CREATED)
async def submit_parsing_job(
    file: UploadFile = File(...),
    knowledge_base_id: UUID = Form(...),
    mode: str = Form(default="standard"),
    account_id: str = Depends(get_current_account_id),
    jobs: ParsingJobService = Depends(get_parsing_job_service),
) -> ParsingJobSubmission:
    """
    Submit a document for parsing into a knowledge base.

    Credits for every page are deducted up front and refunded if the job fails.
    The response carries the creation status (PENDING); poll
    GET /parsing-jobs/{job_id} for progress.

    Raises:
        HTTPException(400): Unsupported or empty file, unknown mode
        HTTPException(402): Insufficient credits (no job is created)
        HTTPException(403): Knowledge base owned by another account
        HTTPException(404): Knowledge base not found
        HTTPException(409): Job status could not advance (job FAILED, refunded)
        HTTPException(503): Upload or queue hand-off failed (job FAILED, refunded)
    """
    data = await file.read()
    try:
        return await jobs.submit(
            account_id,
            knowledge_base_id,
            data,
            file.filename or "",
            mode,
        )
    except KnowledgeEngineException as e:
        raise to_http_exception(e) from e


@router.post("/estimate", response_model=CostEstimate)
async def estimate_parsing_cost(
    file: UploadFile = File(...),
    mode: str = Form(default="standard"),
    account_id: str = Depends(get_current_account_id),
    jobs: ParsingJobService = Depends(get_parsing_job_service),
) -> CostEstimate:
    """Page count and credit cost of a parse, without charging."""
    data = await file.read()
    try:
        return jobs.estimate_cost(data, file.filename or "", mode)
    except KnowledgeEngineException as e:
        raise to_http_exception(e) from e


@router.get("", response_model=ParsingJobList)
async def list_parsing_jobs(
    limit: int | None = Query(default=None, ge=1, le=500),
    account_id: str = Depends(get_current_account_id),
    jobs: ParsingJobService = Depends(get_parsing_job_service),
) -> ParsingJobList:
    """The caller's jobs, newest first."""
    return ParsingJobList(jobs=await jobs.list_jobs(account_id, limit))


@router.get("/{job_id}", response_model=ParsingJobStatusResponse)
async def get_parsing_job(
    job_id: UUID,
    account_id: str = Depends(get_current_account_id),
    jobs: ParsingJobService = Depends(get_parsing_job_service),
) -> ParsingJobStatusResponse:
    """
    Poll a job.

    markdown and pages are present once COMPLETED; error once FAILED.

    Raises:
        HTTPException(404): Unknown job, or a job of another account
    """
    try:
        return await jobs.get_status(job_id, account_id=account_id)
    except KnowledgeEngineException as e:
        raise to_http_exception(e) from e
