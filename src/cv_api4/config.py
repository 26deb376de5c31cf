"""Runtime configuration read from ``CV_*`` environment variables.

Settings are validated at the edge with pydantic-settings so the core
never touches ``os.environ``.  Only the CLI layer instantiates
:class:`AppSettings`; everything below it receives plain values.
"""

from __future__ import annotations

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from cv_api4.core.formats import DEFAULT_FORMAT
from cv_api4.exceptions import ConfigurationError


class AppSettings(BaseSettings):
    """Central application settings.

    ``CV_OUTPUT`` selects the default output format when ``--out`` is
    omitted.  ``CV_API4_URL`` points at the APIv4 REST endpoint; without
    it no remote call can be made.
    """

    model_config = SettingsConfigDict(
        env_prefix="CV_",
        extra="ignore",
        case_sensitive=False,
    )

    output: str = Field(
        default=DEFAULT_FORMAT,
        min_length=1,
        description="Default output format.",
    )
    api4_url: str | None = Field(
        default=None,
        description="Base URL of the APIv4 REST endpoint.",
    )
    api_key: str | None = Field(
        default=None,
        description="API key sent as an X-Civi-Auth bearer token.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for the remote call (seconds).",
    )
    user_agent: str = Field(
        default="cv-api4/0.1",
        min_length=1,
        description="User-Agent header for the remote call.",
    )


def load_settings() -> AppSettings:
    """Build :class:`AppSettings`, mapping validation failures to our errors."""
    try:
        return AppSettings()
    except ValidationError as exc:
        fields = ", ".join(
            "CV_" + ".".join(str(part) for part in err["loc"]).upper()
            for err in exc.errors()
        )
        raise ConfigurationError(
            f"Invalid configuration: {fields}",
            hint="Check the CV_* environment variables.",
        ) from exc
