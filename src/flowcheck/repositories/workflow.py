"""Repository for Workflow entity."""

from src.flowcheck.models import Workflow
from src.flowcheck.repositories.base import BaseRepository


class WorkflowRepository(BaseRepository[Workflow]):
    """Read access to workflow definitions. Workflows are authored elsewhere."""

    model = Workflow
