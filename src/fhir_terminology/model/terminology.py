from __future__ import annotations

from dataclasses import dataclass
from typing import NewType, Self

from fhir_terminology.config.constants import CACHE_KEY_SEPARATOR

Code = NewType("Code", str)
CodeSystemUri = NewType("CodeSystemUri", str)
ValueSetUrl = NewType("ValueSetUrl", str)
Display = NewType("Display", str)


@dataclass(frozen=True)
class ValidationRequest:
    code: Code
    value_set_url: ValueSetUrl
    system: CodeSystemUri | None = None
    display: Display | None = None

    @property
    def cache_key(self) -> str:
        """Key identifying this request's (ValueSet, system, code) triple.

        The separator is not escaped; a `|` inside a URL or code could make two triples collide."""
        return CACHE_KEY_SEPARATOR.join((self.value_set_url, self.system or "", self.code))


@dataclass(frozen=True)
class ValidationOutcome:
    """Answer to a ValidationRequest.

    `was_validated` is only true when the terminology server actually answered. Anything else is a fail-open
    assumption, which must always be valid."""

    is_valid: bool
    was_validated: bool
    message: str | None = None
    display: str | None = None

    def __post_init__(self) -> None:
        if not self.was_validated and not self.is_valid:
            message = "An outcome that was not validated by the terminology server must be valid"
            raise ValueError(message)

    @classmethod
    def unverified(cls, message: str) -> Self:
        return cls(is_valid=True, was_validated=False, message=message)


@dataclass(frozen=True)
class CacheStats:
    size: int
    max_size: int
