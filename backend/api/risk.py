"""
Lexi Risk API
=============
Read-only access to the clause pattern catalog.
"""

from fastapi import APIRouter

from core.catalog import CATEGORY_DISPLAY_NAMES, CATEGORY_SEVERITY, RiskCategory, get_catalog
from schemas import CatalogResponse, CategoryInfoSchema

router = APIRouter(prefix="/risk", tags=["Risk"])


@router.get(
    "/catalog",
    response_model=CatalogResponse,
    summary="Get the risk catalog",
    description="List every clause rule, risk keyword and indicator the scanner uses."
)
async def get_risk_catalog() -> CatalogResponse:
    """Return the active catalog."""
    return CatalogResponse(**get_catalog().to_dict())


@router.get(
    "/categories",
    response_model=list[CategoryInfoSchema],
    summary="List risk categories",
    description="All risk categories with their display names and default severities."
)
async def list_categories() -> list[CategoryInfoSchema]:
    """Return the closed set of risk categories."""
    return [
        CategoryInfoSchema(
            category=category.value,
            category_display=CATEGORY_DISPLAY_NAMES[category],
            default_severity=CATEGORY_SEVERITY[category].value
        )
        for category in RiskCategory
    ]
