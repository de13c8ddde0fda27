"""Shared pydantic bases: every schema in the service rejects unknown fields."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Response base. Extra keys are a programming error, not client input."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class StrictRequestModel(StrictModel):
    """Request base; surrounding whitespace is dropped before field validators run."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, str_strip_whitespace=True)
