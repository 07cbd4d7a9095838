"""FastAPI dependencies - DI container."""

from functools import lru_cache

from slowapi import Limiter
from slowapi.util import get_remote_address

from codebatch.api.container import get_container
from codebatch.application.workflow.use_case import WorkflowOrchestrator
from codebatch.domain.ports.config import AppConfig
from codebatch.infrastructure.config import load_config

limiter = Limiter(key_func=get_remote_address)


@lru_cache
def get_config() -> AppConfig:
    """Load config once at startup."""
    return load_config()


def get_orchestrator() -> WorkflowOrchestrator:
    """Workflow orchestrator from the global container."""
    return get_container().orchestrator
