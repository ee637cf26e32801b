"""
Lexi API Module
===============
FastAPI routers for the Lexi API.
"""

from api.analyze import router as analyze_router
from api.quality import router as quality_router
from api.risk import router as risk_router

__all__ = ["analyze_router", "quality_router", "risk_router"]
