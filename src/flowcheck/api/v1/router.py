from fastapi import APIRouter

from src.flowcheck.api.v1 import executions, test_cases, test_runs, webhooks

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(webhooks.router)
api_router.include_router(executions.router)
api_router.include_router(test_cases.router)
api_router.include_router(test_runs.router)
