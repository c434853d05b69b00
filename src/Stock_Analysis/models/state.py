"""Controller state machine: Idle | Pending | Succeeded | Failed.

ControllerState is a discriminated union keyed on ``kind`` so that a state
round-trips through JSON and consumers can ``match`` on the concrete class.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from Stock_Analysis.models.analysis import AnalysisReport, AnalysisRequest
from Stock_Analysis.models.enums import AdmissionBlock, FailureKind


class ErrorInfo(BaseModel):
    """A classified failure with its user-facing advisory message."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str
    detail: str | None = None
    http_status: int | None = None


class Idle(BaseModel):
    """No submission yet, or the last result was cleared."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["idle"] = "idle"


class Pending(BaseModel):
    """A request is in flight. At most one exists per session."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["pending"] = "pending"
    request: AnalysisRequest


class Succeeded(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["succeeded"] = "succeeded"
    report: AnalysisReport


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failed"] = "failed"
    error: ErrorInfo


ControllerState = Annotated[Idle | Pending | Succeeded | Failed, Field(discriminator="kind")]


class Admission(BaseModel):
    """Whether the session currently accepts a submission, and if not, why."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: AdmissionBlock | None = None
