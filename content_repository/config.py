"""
Configuration for the content repository.

Uses pydantic-settings so every option can come from the environment
(prefix ``CONTENT_REPOSITORY_``) or be passed explicitly.

Invariants:
    - All settings have sensible defaults for local use
    - The filesystem root defaults to the current working directory
"""

import os

from pydantic import Field
from pydantic_settings import BaseSettings


class RepositorySettings(BaseSettings):
    """Repository configuration loaded from environment."""

    # Engine selection
    engine: str = Field(default="filesystem", description="Engine name to attach")

    # Filesystem engine
    root: str = Field(default_factory=os.getcwd, description="Filesystem engine root directory")
    encoding: str = Field(default="utf-8", description="Encoding of fs:content streams")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="text", description="Log format: text or json")

    model_config = {"env_prefix": "CONTENT_REPOSITORY_"}
