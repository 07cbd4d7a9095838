"""Dependency Injection Container - centralized service management."""

from functools import cached_property
from pathlib import Path

from codebatch.application.planning.use_case import BatchPlanner
from codebatch.application.workflow.use_case import WorkflowOrchestrator
from codebatch.domain.ports.config import AppConfig
from codebatch.infrastructure.config import load_config
from codebatch.infrastructure.content import FileSystemContentSource
from codebatch.infrastructure.persistence import TaskQueue, WorkflowStateStore


class Container:
    """Dependency Injection Container with lazy initialization.

    All dependencies are created on first access and cached.

    Usage:
        container = Container()
        orchestrator = container.orchestrator
    """

    def __init__(self, config: AppConfig | None = None):
        """Initialize container with optional config override."""
        self._config_override = config

    @cached_property
    def config(self) -> AppConfig:
        """Application configuration."""
        if self._config_override:
            return self._config_override
        return load_config()

    @cached_property
    def store(self) -> WorkflowStateStore:
        """Per-project workflow state, plans and tasks on disk."""
        return WorkflowStateStore(self.config.persistence.state_dir)

    @cached_property
    def task_queue(self) -> TaskQueue:
        return TaskQueue(self.store)

    @cached_property
    def content_source(self) -> FileSystemContentSource:
        """Project file reader; the generated docs folder is never planned."""
        docs_folder = Path(self.config.artifacts.docs_dir).name
        return FileSystemContentSource(self.config.content, excluded_dirs={docs_folder})

    @cached_property
    def planner(self) -> BatchPlanner:
        return BatchPlanner(self.content_source, self.config.batching)

    @cached_property
    def orchestrator(self) -> WorkflowOrchestrator:
        """Workflow orchestrator with all dependencies."""
        return WorkflowOrchestrator(
            store=self.store,
            queue=self.task_queue,
            planner=self.planner,
            content_source=self.content_source,
            artifacts=self.config.artifacts,
            delivery_max_length=self.config.content.delivery_max_length,
        )

    def reset(self) -> None:
        """Reset all cached instances (useful for testing)."""
        for attr in list(self.__dict__.keys()):
            if not attr.startswith("_"):
                delattr(self, attr)


# Global container instance
_container: Container | None = None


def get_container() -> Container:
    """Get or create global container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def set_container(container: Container) -> None:
    """Install a container (tests use one with a temporary state dir)."""
    global _container
    _container = container


def reset_container() -> None:
    """Reset global container (for testing)."""
    global _container
    if _container:
        _container.reset()
    _container = None
