"""Pydantic models for config types."""

from typing import List, Optional
from pydantic import BaseModel, Field

class RepoConfig(BaseModel):
    """Repository configuration."""
    remote: str = "origin"
    main_branch: str = "main"
    github_repo_owner: Optional[str] = None
    github_repo_name: Optional[str] = None

    class Config:
        """Pydantic config."""
        extra = "allow"  # Allow extra fields for forward compatibility
        frozen = True

class UpdateConfig(BaseModel):
    """Branch selection and exclusion policy."""
    exclude_patterns: List[str] = Field(default_factory=lambda: ["backup/", "temp/", "archive/"])
    excluded_labels: List[str] = Field(default_factory=lambda: ["mergequeue"])
    # A labelled PR is only excluded once approved, unless the override label is present
    require_approval: bool = True
    override_label: Optional[str] = "blocked"
    install_dependencies: bool = True

    class Config:
        """Pydantic config."""
        extra = "allow"
        frozen = True

class ToolConfig(BaseModel):
    """Per-run toggles."""
    dry_run: bool = False
    no_push: bool = False
    verbose: bool = False

    class Config:
        """Pydantic config."""
        extra = "allow"
        frozen = True

class StackupConfig(BaseModel):
    """Full pystackup configuration."""
    repo: RepoConfig = Field(default_factory=RepoConfig)
    update: UpdateConfig = Field(default_factory=UpdateConfig)
    tool: ToolConfig = Field(default_factory=ToolConfig)

    class Config:
        """Pydantic config."""
        extra = "allow"
        frozen = True

    @property
    def main_branch(self) -> str:
        return self.repo.main_branch

    @property
    def remote(self) -> str:
        return self.repo.remote

    @property
    def dry_run(self) -> bool:
        return self.tool.dry_run

    @property
    def no_push(self) -> bool:
        return self.tool.no_push
