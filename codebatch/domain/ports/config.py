"""Configuration models."""

from pydantic import BaseModel, ConfigDict, model_validator


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class BatchingConfig(BaseModel):
    """Size tiers and batch limits, in estimated tokens."""

    small_max: int = 15000  # below: combined
    large_min: int = 20000  # above: multi
    target_batch_size: int = 18000
    max_batch_size: int = 25000  # hard cap, never exceeded
    max_files_per_batch: int = 12

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _check_limits(self) -> "BatchingConfig":
        if self.small_max <= 0 or self.target_batch_size <= 0:
            raise ValueError("small_max and target_batch_size must be positive")
        if self.small_max > self.large_min:
            raise ValueError("small_max must not exceed large_min")
        if self.target_batch_size > self.max_batch_size:
            raise ValueError("target_batch_size must not exceed max_batch_size")
        if self.large_min > self.max_batch_size:
            raise ValueError("large_min must not exceed max_batch_size")
        if self.max_files_per_batch < 1:
            raise ValueError("max_files_per_batch must be at least 1")
        return self


class PersistenceConfig(BaseModel):
    """Persistence settings."""

    state_dir: str = "output/codebatch"


class ArtifactsConfig(BaseModel):
    """Where generated documents are expected, relative to the project root."""

    docs_dir: str = "ai_docs"
    files_dir: str = "files"
    modules_dir: str = "modules"
    required_extensions: list[str] = [".md"]
    relations_files: list[str] = ["relations.md"]
    architecture_files: list[str] = ["README.md", "architecture.md"]
    # Accepted alternative names for fixed files (matched case-insensitively)
    aliases: dict[str, list[str]] = {
        "README.md": ["README.txt", "project-readme.md"],
        "architecture.md": ["system-architecture.md", "project-architecture.md"],
    }
    min_file_size: int = 0  # bytes; smaller fixed files count as missing


class ContentConfig(BaseModel):
    """Project scanning and task content delivery."""

    max_file_size: int = 2 * 1024 * 1024
    max_files: int = 10000
    follow_symlinks: bool = False
    delivery_max_length: int = 50000  # chars per delivered chunk


class SecurityConfig(BaseModel):
    """Security settings."""

    rate_limit_requests_per_minute: int = 100
    cors_origins: list[str] = ["http://localhost:5173"]


class AppConfig(BaseModel):
    """Full application configuration."""

    server: ServerConfig = ServerConfig()
    batching: BatchingConfig = BatchingConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    artifacts: ArtifactsConfig = ArtifactsConfig()
    content: ContentConfig = ContentConfig()
    security: SecurityConfig = SecurityConfig()
    log_level: str = "INFO"
    # Log file: path relative to cwd or absolute. Empty = only stdout. Rotation when file exceeds max_mb.
    log_file: str = ""
    log_rotation_max_mb: int = 5
    log_rotation_backups: int = 3
