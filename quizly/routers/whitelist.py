# quizly/routers/whitelist.py
from typing import List

from fastapi import APIRouter, Depends

from quizly.core.dependencies import get_whitelist_service
from quizly.schemas.whitelist import WhitelistEntryResponse
from quizly.services.whitelist import WhitelistService

router = APIRouter(prefix="/api/whitelist", tags=["Whitelist"])


@router.get("/students", response_model=List[WhitelistEntryResponse])
def get_whitelisted_students(
    service: WhitelistService = Depends(get_whitelist_service),
):
    """All active roster entries, by section then name."""
    return service.list_students()


@router.get("/sections", response_model=List[str])
def get_whitelist_sections(
    service: WhitelistService = Depends(get_whitelist_service),
):
    return service.list_sections()


@router.get("/sections/{section}/students", response_model=List[WhitelistEntryResponse])
def get_whitelisted_students_by_section(
    section: str,
    service: WhitelistService = Depends(get_whitelist_service),
):
    return service.list_students_by_section(section)
