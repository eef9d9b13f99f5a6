"""
Lightweight pydantic models for the FHIR terminology resources the binding validator reads.

Only the elements that matter for code membership and display checks are modelled; everything else is
ignored so that R4, R4B and R5 resources all load.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class BindingStrength(StrEnum):
    required = "required"
    extensible = "extensible"
    preferred = "preferred"
    example = "example"


class Coding(BaseModel):
    system: str | None = None
    version: str | None = None
    code: str | None = None
    display: str | None = None
    user_selected: bool | None = Field(None, alias="userSelected")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class CodeableConcept(BaseModel):
    coding: list[Coding] = Field(default_factory=list)
    text: str | None = None

    model_config = {"extra": "ignore"}


class ElementDefinitionBinding(BaseModel):
    strength: BindingStrength = BindingStrength.example
    description: str | None = None
    value_set: str | None = Field(None, alias="valueSet")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def value_set_url(self) -> str | None:
        """Canonical URL of the bound ValueSet without any `|version` suffix."""
        return self.value_set.split("|")[0] if self.value_set else None


class ValueSetContains(BaseModel):
    system: str | None = None
    code: str | None = None
    display: str | None = None
    contains: list[ValueSetContains] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class ValueSetExpansion(BaseModel):
    contains: list[ValueSetContains] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class ValueSetConceptReference(BaseModel):
    code: str
    display: str | None = None

    model_config = {"extra": "ignore"}


class ValueSetFilter(BaseModel):
    property: str | None = None
    op: str | None = None
    value: str | None = None

    model_config = {"extra": "ignore"}


class ValueSetInclude(BaseModel):
    system: str | None = None
    version: str | None = None
    concept: list[ValueSetConceptReference] | None = None
    filter: list[ValueSetFilter] | None = None
    value_set: list[str] | None = Field(None, alias="valueSet")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class ValueSetCompose(BaseModel):
    include: list[ValueSetInclude] = Field(default_factory=list)
    exclude: list[ValueSetInclude] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class ValueSet(BaseModel):
    resourceType: str = Field(default="ValueSet", frozen=True)  # noqa: N815
    url: str
    version: str | None = None
    compose: ValueSetCompose | None = None
    expansion: ValueSetExpansion | None = None

    model_config = {"extra": "ignore"}


class CodeSystemDesignation(BaseModel):
    language: str | None = None
    value: str | None = None

    model_config = {"extra": "ignore"}


class CodeSystemConcept(BaseModel):
    code: str
    display: str | None = None
    designation: list[CodeSystemDesignation] = Field(default_factory=list)
    concept: list[CodeSystemConcept] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    def find(self, code: str) -> CodeSystemConcept | None:
        """This concept or the first nested concept carrying `code`."""
        if self.code == code:
            return self
        return next((found for child in self.concept if (found := child.find(code))), None)

    @property
    def displays(self) -> list[str]:
        """The display plus every designation value, in declaration order."""
        displays = [self.display] if self.display else []
        displays.extend(d.value for d in self.designation if d.value)
        return displays


class CodeSystem(BaseModel):
    resourceType: str = Field(default="CodeSystem", frozen=True)  # noqa: N815
    url: str
    version: str | None = None
    concept: list[CodeSystemConcept] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    def find(self, code: str) -> CodeSystemConcept | None:
        return next((found for concept in self.concept if (found := concept.find(code))), None)
