"""POST /v1/reports/run - trigger the weekly report outside the schedule"""

from fastapi import APIRouter, Depends, HTTPException

from dispute_reporter.api.dependencies import get_pipeline
from dispute_reporter.api.v1.schemas import RunResponse
from dispute_reporter.domain.models import OutcomeStatus
from dispute_reporter.pipeline import ReportPipeline

router = APIRouter()


@router.post("/reports/run", response_model=RunResponse)
async def run_report(pipeline: ReportPipeline = Depends(get_pipeline)):
    """
    Run the report for last week now.

    Returns 409 when a run is already in progress. A failed run still returns
    200 with status "failed"; the details are in the logs.
    """
    outcome = await pipeline.run()
    if outcome.status == OutcomeStatus.SKIPPED:
        raise HTTPException(status_code=409, detail="Report run already in progress")
    return RunResponse.from_outcome(outcome)
