from fastapi import APIRouter, Query

from issue_scout.models.schemas import IssueListResponse
from issue_scout.services import browse_service

router = APIRouter()


@router.get("/issues", response_model=IssueListResponse)
async def list_issues(
    language: str | None = None,
    q: str | None = None,
    min_difficulty: float | None = None,
    max_difficulty: float | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
) -> IssueListResponse:
    return await browse_service.list_issues(
        language=language,
        q=q,
        min_difficulty=min_difficulty,
        max_difficulty=max_difficulty,
        page=page,
        per_page=per_page,
    )
