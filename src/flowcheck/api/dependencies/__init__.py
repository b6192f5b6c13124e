"""FastAPI dependency injection definitions.

Re-exports all dependencies for convenience.
"""

# Auth
from src.flowcheck.api.dependencies.auth import (
    EngineCallback,
    OperatorAccess,
    require_operator_key,
    verify_engine_callback,
)

# Database
from src.flowcheck.api.dependencies.db import DBSession, get_db_session

# Repositories
from src.flowcheck.api.dependencies.repositories import (
    ExecutionRepo,
    StepResultRepo,
    TestCaseRepo,
    TestRunRepo,
    WorkflowRepo,
)

# Services
from src.flowcheck.api.dependencies.services import (
    ActivityServiceDep,
    TestCaseServiceDep,
    TestExecutionServiceDep,
    TriggerServiceDep,
    WebhookAuthenticatorDep,
    get_activity_service,
    get_test_case_service,
    get_test_execution_service,
    get_trigger_service,
    get_webhook_authenticator,
)

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Auth
    "EngineCallback",
    "OperatorAccess",
    "require_operator_key",
    "verify_engine_callback",
    # Repositories
    "ExecutionRepo",
    "StepResultRepo",
    "TestCaseRepo",
    "TestRunRepo",
    "WorkflowRepo",
    # Services
    "ActivityServiceDep",
    "TestCaseServiceDep",
    "TestExecutionServiceDep",
    "TriggerServiceDep",
    "WebhookAuthenticatorDep",
    "get_activity_service",
    "get_test_case_service",
    "get_test_execution_service",
    "get_trigger_service",
    "get_webhook_authenticator",
]
