"""
FHIR Parameters models for `$validate-code` responses.

Only the parts of the resource a terminology server uses to answer a validation are modelled; unknown
parameter names and other `value[x]` types are tolerated and ignored.

See: https://www.hl7.org/fhir/parameters.html
"""

from typing import Literal

from pydantic import BaseModel, Field


class ParametersParameter(BaseModel):
    """FHIR Parameters.parameter component."""

    name: str = Field(..., description="Name from the definition")
    valueBoolean: bool | None = Field(default=None)  # noqa: N815
    valueString: str | None = Field(default=None)  # noqa: N815

    model_config = {"extra": "ignore"}


class Parameters(BaseModel):
    """FHIR Parameters resource."""

    resourceType: Literal["Parameters"] = Field(  # noqa: N815
        ...,
        description="FHIR resource type",
    )
    parameter: list[ParametersParameter] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    def get(self, name: str) -> ParametersParameter | None:
        """First parameter with the given name, if any."""
        return next((p for p in self.parameter if p.name == name), None)

    def boolean(self, name: str) -> bool | None:
        parameter = self.get(name)
        return parameter.valueBoolean if parameter else None

    def string(self, name: str) -> str | None:
        parameter = self.get(name)
        return parameter.valueString if parameter else None
