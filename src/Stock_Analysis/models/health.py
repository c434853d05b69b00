"""Health check model: scoring service availability snapshot."""

import datetime

from pydantic import BaseModel, ConfigDict

from Stock_Analysis.models.enums import ConnectionState


class HealthStatus(BaseModel):
    """Result of one probe against the scoring service's ``/health`` endpoint.

    Replaced wholesale on every probe; never merged with a previous snapshot.
    """

    model_config = ConfigDict(frozen=True)

    state: ConnectionState
    detail: str | None = None
    api_key_configured: bool | None = None
    checked_at: datetime.datetime

    @property
    def is_healthy(self) -> bool:
        return self.state == ConnectionState.HEALTHY
