"""Tool registry types: metadata, execution context/result, and the Tool contract."""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from devtoolbox.plugins.manifest import PLUGIN_ID_PATTERN


class ToolCategory(str, Enum):
    FILE = "file"
    CODE = "code"
    GIT = "git"
    BUILD = "build"
    TEST = "test"
    DEPLOY = "deploy"
    UTILITY = "utility"
    API = "api"
    DATABASE = "database"
    OTHER = "other"


class ToolMetadata(BaseModel):
    """Tool metadata. ``enabled`` is toggled by the registry."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: str
    name: str = Field(..., min_length=1)
    category: ToolCategory
    description: str = Field(..., min_length=1)
    version: Optional[str] = None
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    enabled: bool = True
    dependencies: List[str] = Field(default_factory=list)
    min_version: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("min_version", "minVersion")
    )
    docs_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("docs_url", "docsUrl")
    )
    repo_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("repo_url", "repoUrl")
    )

    @field_validator("id")
    @classmethod
    def id_well_formed(cls, v: str) -> str:
        if not v or not PLUGIN_ID_PATTERN.match(v):
            raise ValueError(
                "Tool ID must contain only alphanumeric characters, hyphens, and underscores"
            )
        return v

    @field_validator("tags")
    @classmethod
    def unique_tags(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


@dataclass
class ToolExecutionContext:
    """Arguments and environment passed to Tool.execute()."""

    args: List[str] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)
    cwd: Path = field(default_factory=Path.cwd)
    env: Dict[str, str] = field(default_factory=lambda: dict(os.environ))


@dataclass
class ToolExecutionResult:
    success: bool
    exit_code: int = 0
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str, exit_code: int = 1) -> "ToolExecutionResult":
        return cls(success=False, exit_code=exit_code, error=error)


class Tool(ABC):
    """A discrete, independently enumerable capability.

    Subclasses set ``metadata`` and implement ``execute``. All other hooks
    are optional.
    """

    metadata: Union[ToolMetadata, dict]

    @abstractmethod
    def execute(self, context: ToolExecutionContext) -> ToolExecutionResult:
        """Run the tool. May also be declared ``async``."""
        ...

    def validate(self, context: ToolExecutionContext) -> tuple[bool, Optional[str]]:
        """Check execution input before execute() is called.

        Returns:
            (is_valid, error_message)
        """
        return True, None

    def self_check(self) -> tuple[bool, Optional[str]]:
        """Report whether the tool is usable. Checked on registration."""
        return True, None

    def get_help(self) -> str:
        return ""

    async def initialize(self) -> None:
        pass

    async def cleanup(self) -> None:
        pass


@dataclass
class ToolSearchFilter:
    """All provided predicates must match; None means 'any'."""

    category: Optional[ToolCategory] = None
    tags: Optional[List[str]] = None
    enabled: Optional[bool] = None
    search: Optional[str] = None
    author: Optional[str] = None


class RegistryStatistics(BaseModel):
    total_tools: int
    enabled_tools: int
    disabled_tools: int
    tools_by_category: Dict[str, int]
    last_registered: Optional[str] = None
    last_unregistered: Optional[str] = None


@dataclass
class RegistryConfig:
    allow_overrides: bool = False
    validate_on_register: bool = True
    max_tools: int = 0  # 0 = unlimited
    persist_state: bool = False
    state_path: Optional[Path] = None
