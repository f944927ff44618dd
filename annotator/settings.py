"""
AnnotatorSettings - explicit service configuration.

One object, built once at startup and passed to the components that need
it. Nothing reads configuration from module globals.

Environment variables (all optional):
- ANNOTATOR_HOST              bind host (default 127.0.0.1)
- ANNOTATOR_PORT              bind port (default 8080)
- ANNOTATOR_AUTOSAVE_SECONDS  autosave interval, 0 disables (default 300)
- ANNOTATOR_PAGE_SIZE         default page size for term listings (default 10)
- ANNOTATOR_DEBUG             "true" for debug logging
"""

import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from annotator.ledger.autosave import AUTOSAVE_INTERVAL_SECONDS

DEFAULT_HOST = "127.0.0.1"  # Localhost only by default
DEFAULT_PORT = 8080
DEFAULT_PAGE_SIZE = 10

ENV_PREFIX = "ANNOTATOR_"


class AnnotatorSettings(BaseModel):
    """Service configuration."""

    model_config = ConfigDict(extra="forbid")

    data_path: Optional[Path] = None
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    autosave_seconds: float = Field(default=AUTOSAVE_INTERVAL_SECONDS, ge=0)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    debug: bool = False

    @property
    def autosave_enabled(self) -> bool:
        return self.autosave_seconds > 0

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "AnnotatorSettings":
        """
        Build settings from ANNOTATOR_* environment variables.

        Explicit overrides win over the environment; overrides set to None
        are ignored so CLI flags that were not given fall through.
        """
        environ = os.environ if environ is None else environ

        values: dict = {}
        for field in ("host", "port", "autosave_seconds", "page_size"):
            raw = environ.get(ENV_PREFIX + field.upper())
            if raw is not None and raw != "":
                values[field] = raw

        debug = environ.get(ENV_PREFIX + "DEBUG")
        if debug is not None:
            values["debug"] = debug.lower() == "true"

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
