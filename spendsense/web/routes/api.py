"""JSON API router."""
from __future__ import annotations

from fastapi import APIRouter

from spendsense.web.routes import api_budgets
from spendsense.web.routes import api_insights
from spendsense.web.routes import api_records
from spendsense.web.routes import api_users

OWNER_PREFIX = "/users/{owner_id}"

router = APIRouter()

router.include_router(api_users.router, prefix="/users", tags=["users"])
router.include_router(api_records.router, prefix=OWNER_PREFIX, tags=["records"])
router.include_router(api_insights.router, prefix=f"{OWNER_PREFIX}/insights", tags=["insights"])
router.include_router(api_budgets.router, prefix=f"{OWNER_PREFIX}/budgets", tags=["budgets"])
