from fastapi import APIRouter
from budget_pacer.app.api.v1 import allocations, budgets

api_router = APIRouter()
api_router.include_router(budgets.router, prefix="/budgets", tags=["budgets"])
api_router.include_router(allocations.router, prefix="/allocations", tags=["allocations"])
