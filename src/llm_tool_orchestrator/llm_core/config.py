"""Runtime configuration for tool dispatch and orchestration."""

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from .logger import get_logger

logger = get_logger(__name__)

OutputSchemaPolicy = Literal["warn", "error"]


class OrchestratorConfig(BaseModel):
    """
    Configuration parameters for the dispatcher and orchestration loop.

    The iteration limit of a conversation is deliberately not part of this
    model: it must be passed explicitly on every run.

    Attributes:
        tool_timeout: Seconds a single tool execution may take before it fails.
        output_schema_policy: ``"warn"`` attaches output-schema mismatches as
            warnings to a successful result, ``"error"`` turns them into errors.
        max_tool_retries: How often a failing tool execution is retried.
            Validation failures are never retried.
        tool_retry_base_delay: Initial backoff delay in seconds, doubled per retry.
        max_concurrency: Upper bound for tools running at the same time within
            one turn. None means no bound.
    """

    model_config = ConfigDict(frozen=True)

    tool_timeout: float = Field(default=180.0, gt=0)
    output_schema_policy: OutputSchemaPolicy = "warn"
    max_tool_retries: int = Field(default=0, ge=0)
    tool_retry_base_delay: float = Field(default=1.0, ge=0)
    max_concurrency: Optional[int] = Field(default=None, ge=1)

    @classmethod
    def from_env(cls, prefix: str = "LLM_TOOLS_", dotenv_path: Optional[str | Path] = None) -> "OrchestratorConfig":
        """Build a config from environment variables.

        A ``.env`` file is loaded first (without overriding variables that are
        already set). Recognized variables are the upper-cased field names with
        the given prefix, e.g. ``LLM_TOOLS_TOOL_TIMEOUT=30``.

        Args:
            prefix: Prefix of the environment variables.
            dotenv_path: Explicit ``.env`` file. If None, python-dotenv searches for one.

        Returns:
            The validated configuration.
        """
        load_dotenv(dotenv_path=dotenv_path)

        values: Dict[str, Any] = {}
        for field_name in cls.model_fields:
            raw = os.getenv(f"{prefix}{field_name.upper()}")
            if raw is None or raw == "":
                continue
            values[field_name] = None if raw.lower() == "none" else raw

        if values:
            logger.debug(f"Loaded configuration from environment: {sorted(values)}")
        return cls.model_validate(values)
