from fastapi import APIRouter

from leave_balance.api.balances import leave_balances_router
from leave_balance.api.scheduler import scheduler_router

api_router = APIRouter()
api_router.include_router(leave_balances_router)
api_router.include_router(scheduler_router)
