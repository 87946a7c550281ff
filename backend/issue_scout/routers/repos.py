from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from issue_scout.models.schemas import RepoDetailResponse, RepoListResponse
from issue_scout.services import browse_service

router = APIRouter()


@router.get("/repos", response_model=RepoListResponse)
async def list_repos(
    language: str | None = None,
    q: str | None = None,
    sort_by: str = Query("active", pattern="^(active|health|stars)$"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
) -> RepoListResponse:
    return await browse_service.list_repos(
        language=language, q=q, sort_by=sort_by, page=page, per_page=per_page
    )


@router.get("/repos/{owner}/{name}", response_model=RepoDetailResponse)
async def repo_detail(owner: str, name: str) -> RepoDetailResponse:
    detail = await browse_service.repo_detail(owner, name)
    if detail is None:
        raise HTTPException(status_code=404, detail="Repository not found")
    return detail
