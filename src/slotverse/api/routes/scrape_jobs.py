"""Generic JSON ingress for scrape jobs.

``POST /api/scrape-jobs``
    Validate and enqueue; answers 202 as soon as the ``pending`` row is
    committed.

``GET /api/scrape-jobs``
    The 20 most recent jobs, newest first.

``GET /api/scrape-jobs/{job_id}``
    One job, including its result payload or error message.

Handlers are decorated by slowapi, which wraps them; annotations are left
unpostponed here so FastAPI can read them through the wrapper.
"""

from fastapi import APIRouter, HTTPException, Request, status

from slotverse.api.dependencies import DispatcherDep, JobStoreDep
from slotverse.api.limiter import INGRESS_RATE_LIMIT, limiter
from slotverse.core.exceptions import (
    DispatchError,
    RequesterThrottledError,
    ScrapeValidationError,
)
from slotverse.core.job_store import RECENT_JOBS_LIMIT
from slotverse.core.models.scraping import ScrapeJob
from slotverse.core.schemas.scraping import (
    ScrapeJobAccepted,
    ScrapeJobCreate,
    ScrapeJobRead,
)

router = APIRouter(prefix="/api/scrape-jobs", tags=["scrape-jobs"])


@router.post("", response_model=ScrapeJobAccepted, status_code=status.HTTP_202_ACCEPTED)
@limiter.limit(INGRESS_RATE_LIMIT)
async def submit_scrape_job(
    request: Request,
    payload: ScrapeJobCreate,
    dispatcher: DispatcherDep,
) -> ScrapeJobAccepted:
    """Enqueue a scrape of ``payload.url`` and return the job id immediately.

    Raises:
        HTTPException 422: The URL is not an absolute http(s) URL.
        HTTPException 429: The requester is over the hourly job limit.
        HTTPException 503: The job could not be written to the store.
    """
    try:
        job = await dispatcher.submit(
            payload.url,
            platform="api",
            channel=payload.channel,
            token=payload.token,
            requested_by=payload.requested_by,
        )
    except ScrapeValidationError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except RequesterThrottledError as exc:
        raise HTTPException(status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)) from exc
    except DispatchError as exc:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    return ScrapeJobAccepted(
        job_id=job.id,
        status=job.status,
        message=f"Scraping job #{job.id} queued for {job.url}",
    )


@router.get("", response_model=list[ScrapeJobRead])
async def list_scrape_jobs(store: JobStoreDep) -> list[ScrapeJob]:
    return await store.list_recent(RECENT_JOBS_LIMIT)


@router.get("/{job_id}", response_model=ScrapeJobRead)
async def get_scrape_job(job_id: int, store: JobStoreDep) -> ScrapeJob:
    job = await store.get(job_id)
    if job is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Scrape job {job_id} not found")
    return job
