"""
Lexi Quality API
================
Lets callers pre-validate text before submitting it for analysis.
"""

from fastapi import APIRouter

from core.quality import assess_quality
from schemas import QualityRequest, QualityResponse

router = APIRouter(prefix="/quality", tags=["Quality"])


@router.post(
    "",
    response_model=QualityResponse,
    summary="Check text quality",
    description="Report whether text looks like usable prose, with the measured metrics."
)
async def check_quality(request: QualityRequest) -> QualityResponse:
    return QualityResponse(**assess_quality(request.text).to_dict())
