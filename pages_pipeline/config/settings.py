"""Application settings and configuration management."""
from pathlib import Path
from tempfile import gettempdir
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """What the built-in documentation workflow builds and when it runs."""

    event: str = "push"
    branch: str = "main"
    crate_name: str = "rahjong"
    source_dir: Path = Path(".")
    doc_path: str = "./target/doc"

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")


class RunnerSettings(BaseSettings):
    """Local execution environment configuration."""

    # runs-on labels this runner can satisfy
    labels: list[str] = Field(default_factory=lambda: ["ubuntu-latest"])
    shell: str = "bash"
    workdir: Path = Path(gettempdir()) / "pages-pipeline"
    keep_workspaces: bool = False

    model_config = SettingsConfigDict(env_prefix="RUNNER_")


class PagesSettings(BaseSettings):
    """Pages hosting target configuration."""

    backend: Literal["local", "s3"] = "local"
    environment: str = "github-pages"
    local_root: Path = Path(gettempdir()) / "pages-pipeline" / "sites"
    base_url: str = ""  # Published URL; derived from the backend when empty

    # S3 static website hosting
    bucket: str = ""
    prefix: str = ""
    region: str = "eu-west-2"
    endpoint_url: str = ""  # S3-compatible endpoint; AWS when empty

    model_config = SettingsConfigDict(env_prefix="PAGES_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    """Main application settings."""

    environment: Literal["dev", "staging", "prod"] = "dev"

    # Sub-settings
    pipeline: PipelineSettings = PipelineSettings()
    runner: RunnerSettings = RunnerSettings()
    pages: PagesSettings = PagesSettings()
    logging: LoggingSettings = LoggingSettings()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_pages_target(self) -> list[str]:
        """Validate required vars for the selected pages backend. Returns list of missing var names."""
        missing = []
        if self.pages.backend == "s3" and not self.pages.bucket.strip():
            missing.append("PAGES_BUCKET")
        if not self.runner.labels:
            missing.append("RUNNER_LABELS")
        return missing

    @property
    def s3_website_url(self) -> str:
        """Website endpoint of the configured S3 bucket."""
        return f"http://{self.pages.bucket}.s3-website.{self.pages.region}.amazonaws.com/"

    def page_url(self, site_dir: Optional[Path] = None) -> str:
        """Public URL of the deployed site."""
        if self.pages.base_url:
            return self.pages.base_url
        if self.pages.backend == "s3":
            return self.s3_website_url
        return (site_dir or self.pages.local_root).resolve().as_uri() + "/"


# Global settings instance
settings = Settings()
