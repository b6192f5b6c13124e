from src.flowcheck.services.activity_service import ActivityService
from src.flowcheck.services.test_case_service import TestCaseService
from src.flowcheck.services.test_execution_service import TestExecutionService
from src.flowcheck.services.trigger_service import TriggerService
from src.flowcheck.services.webhook_auth import WebhookAuthenticator

__all__ = [
    "ActivityService",
    "TestCaseService",
    "TestExecutionService",
    "TriggerService",
    "WebhookAuthenticator",
]
