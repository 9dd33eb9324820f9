"""Dashboard API endpoints."""

from fastapi import APIRouter, Depends

from board_backend.api.dependencies import get_token_payload
from board_backend.models.auth import TokenPayload
from board_backend.models.visitor import DashboardVisitorsResponse
from board_backend.services.visitor_service import VisitorService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/visitors")
async def visitors(
    payload: TokenPayload = Depends(get_token_payload),
) -> DashboardVisitorsResponse:
    """Visitor totals plus the caller's own visit count."""
    visitor_service = VisitorService()
    summary = await visitor_service.get_summary()
    my_visits = await visitor_service.get_visitor_count(payload.email)

    return DashboardVisitorsResponse(
        total_visitors=summary.total_visitors,
        total_visits=summary.total_visits,
        my_visits=my_visits,
    )
