"""
FastAPI Endpoints for URL Shortener Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models, query parameters)
- Error handling and HTTP responses
- Delegating to the service layer

Every route of this router passes the process-wide rate limit gate first.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.api.schemas import (
    CountResponse,
    ErrorResponse,
    ShortenRequest,
    ShortenResponse,
    ShortURLResponse,
    VisitorResponse,
)
from shortener.core.exceptions import (
    DatabaseError,
    DuplicateURLError,
    InvalidInputError,
    ShortURLNotFoundError,
)
from shortener.core.rate_limit import enforce_rate_limit
from shortener.core.setting import Settings
from shortener.db.interface import URLStore
from shortener.db.session import get_session
from shortener.db.sql_store import SQLModelURLStore
from shortener.middleware.logging import get_client_ip
from shortener.services.url_service import URLShorteningService

INTERNAL_ERROR = "Internal server error"

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}

router = APIRouter(dependencies=[Depends(enforce_rate_limit)], responses=ERROR_RESPONSES)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(session: AsyncSession = Depends(get_session)) -> URLStore:
    return SQLModelURLStore(session)


def get_url_service(store: URLStore = Depends(get_store)) -> URLShorteningService:
    return URLShorteningService(store)


@router.post(
    "/api/urls",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["urls"],
    summary="Create a shortened URL",
    description="Stores the original URL and returns its short URL"
)
async def create_short_url(
    body: ShortenRequest,
    service: URLShorteningService = Depends(get_url_service),
    settings: Settings = Depends(get_settings)
) -> ShortenResponse:
    """
    Raises:
        HTTPException 400: If the URL is empty or already registered
        HTTPException 500: If the database fails
    """
    try:
        short_code = await service.create_short_url(body.url)
    except (InvalidInputError, DuplicateURLError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR
        )

    return ShortenResponse(shorten_url=settings.short_url_for(short_code))


@router.get(
    "/api/urls/count",
    response_model=CountResponse,
    tags=["urls"],
    summary="Get total URLs",
    description="Returns the total number of shortened URLs (useful for pagination)"
)
async def count_urls(
    service: URLShorteningService = Depends(get_url_service)
) -> CountResponse:
    try:
        total = await service.count_short_urls()
    except DatabaseError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR
        )
    return CountResponse(total_urls=total)


@router.get(
    "/api/urls",
    response_model=list[ShortURLResponse],
    tags=["urls"],
    summary="List registered URLs",
    description="Paginated list of all shortened URLs in creation order"
)
async def list_urls(
    page_size: int = Query(..., description="Number of items per page (1-100)"),
    page_index: int = Query(..., description="Page index, starting from 1"),
    service: URLShorteningService = Depends(get_url_service),
    settings: Settings = Depends(get_settings)
) -> list[ShortURLResponse]:
    try:
        summaries = await service.list_short_urls(page_size, page_index)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR
        )

    return [
        ShortURLResponse(
            original=summary.original_url,
            shorten=settings.short_url_for(summary.short_code),
            total_visitor=summary.total_visitors,
            created_at=summary.created_at,
        )
        for summary in summaries
    ]


@router.get(
    "/api/urls/{code}/visitors",
    response_model=list[VisitorResponse],
    tags=["visitors"],
    summary="List visitors for a shortened URL",
    description="Paginated list of visits to the given short code, most recent first",
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
)
async def list_visitors(
    code: str,
    page_size: int = Query(..., description="Number of items per page (1-100)"),
    page_index: int = Query(..., description="Page index, starting from 1"),
    service: URLShorteningService = Depends(get_url_service),
    settings: Settings = Depends(get_settings)
) -> list[VisitorResponse]:
    try:
        visits = await service.list_visitors(code, page_size, page_index)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ShortURLNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="This URL ID does not match any record"
        )
    except DatabaseError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR
        )

    return [
        VisitorResponse(
            ip=visit.ip,
            original=visit.original_url,
            shorten=settings.short_url_for(visit.short_code),
            time_visited=visit.visited_at,
        )
        for visit in visits
    ]


@router.get(
    "/{code}",
    status_code=status.HTTP_301_MOVED_PERMANENTLY,
    response_class=RedirectResponse,
    tags=["urls"],
    summary="Redirect to original URL",
    description="Redirects to the original URL and records the visit",
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
)
async def redirect_to_url(
    code: str,
    request: Request,
    service: URLShorteningService = Depends(get_url_service)
) -> RedirectResponse:
    """
    Raises:
        HTTPException 400: If the short code is malformed
        HTTPException 404: If the short code is unknown
        HTTPException 500: If the lookup fails
    """
    client_ip = get_client_ip(request)

    try:
        original_url = await service.redirect_and_record(code, client_ip)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ShortURLNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="This URL does not exist"
        )
    except DatabaseError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR
        )

    return RedirectResponse(url=original_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
