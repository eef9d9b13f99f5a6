import asyncio
import logging
from dataclasses import dataclass
from typing import Annotated, Any

from wireup import Inject, service

from fhir_terminology.config.constants import CODE_INVALID_ISSUE
from fhir_terminology.logging.logs_manager import add_validation_id_to_logger
from fhir_terminology.model.operation_outcome import (
    IssueSeverity,
    OperationOutcome,
    OperationOutcomeIssue,
    operation_outcome,
)
from fhir_terminology.model.terminology import Code, CodeSystemUri, Display, ValidationRequest, ValueSetUrl
from fhir_terminology.model.terminology_resources import (
    BindingStrength,
    CodeableConcept,
    Coding,
    ElementDefinitionBinding,
    ValueSet,
    ValueSetCompose,
    ValueSetContains,
    ValueSetInclude,
)
from fhir_terminology.repos.terminology_client import TerminologyClient
from fhir_terminology.repos.terminology_registry import TerminologyRegistry
from fhir_terminology.services.external_systems import requires_external_validation

logger = logging.getLogger(__name__)

CODED_ELEMENT_TYPES = frozenset({"code", "string", "uri"})


@dataclass(frozen=True)
class BindingValidationResult:
    valid: bool
    message: str | None = None
    display_warning: str | None = None


VALID = BindingValidationResult(valid=True)


def binding_strength_to_severity(strength: BindingStrength) -> IssueSeverity:
    match strength:
        case BindingStrength.required:
            return IssueSeverity.error
        case BindingStrength.extensible:
            return IssueSeverity.warning
        case _:
            return IssueSeverity.information


def _not_in_value_set_message(code: str | None, system: str | None, value_set_url: str, strength: str) -> str:
    code_part = f"'{code}'" if code else "(empty)"
    system_part = f" from system '{system}'" if system else ""
    return f"Code {code_part}{system_part} is not in the {strength} ValueSet '{value_set_url}'"


def _apply_strength(
    coding: Coding, binding: ElementDefinitionBinding, value_set_url: str, message: str | None = None
) -> BindingValidationResult:
    """Result for a coding known not to be in the bound ValueSet."""
    if binding.strength is BindingStrength.example:
        return VALID
    message = message or _not_in_value_set_message(coding.code, coding.system, value_set_url, binding.strength)
    return BindingValidationResult(valid=binding.strength is not BindingStrength.required, message=message)


class BindingValidator:
    """Checks coded values against the ValueSet of an `ElementDefinition.binding`.

    Codes from large external code systems (SNOMED CT, LOINC, ...) go to the terminology server when one is
    configured. Everything else, and anything the server couldn't answer, is checked against the locally
    bundled ValueSets and CodeSystems.
    """

    def __init__(self, terminology_client: TerminologyClient | None, registry: TerminologyRegistry) -> None:
        super().__init__()
        self.terminology_client = terminology_client
        self.registry = registry

    async def validate_coding(self, coding: Coding, binding: ElementDefinitionBinding) -> BindingValidationResult:
        value_set_url = binding.value_set_url
        if not value_set_url:
            return VALID

        value_set = self.registry.get_value_set(value_set_url)
        use_external = (
            self.terminology_client is not None
            and coding.system is not None
            and requires_external_validation(coding.system)
        )

        if value_set is None and not use_external:
            if binding.strength is BindingStrength.required:
                return BindingValidationResult(
                    valid=False, message=f"ValueSet '{value_set_url}' not found for required binding"
                )
            return VALID

        if use_external and coding.code and self.terminology_client:
            outcome = await self.terminology_client.validate(
                ValidationRequest(
                    code=Code(coding.code),
                    value_set_url=ValueSetUrl(value_set_url),
                    system=CodeSystemUri(coding.system) if coding.system else None,
                    display=Display(coding.display) if coding.display else None,
                )
            )
            if outcome.was_validated:
                if outcome.is_valid:
                    return VALID
                return _apply_strength(coding, binding, value_set_url, outcome.message)
            logger.info(
                "Terminology server gave no answer, falling back to local validation",
                extra={"system": coding.system, "value_set": value_set_url},
            )

        if value_set is None:
            return VALID

        if not self._is_code_in_value_set(coding, value_set):
            return _apply_strength(coding, binding, value_set_url)

        if display_warning := self.validate_display(coding):
            return BindingValidationResult(valid=True, display_warning=display_warning)
        return VALID

    async def validate_codeable_concept(
        self, concept: CodeableConcept, binding: ElementDefinitionBinding
    ) -> BindingValidationResult:
        if not concept.coding:
            if binding.strength is BindingStrength.required and concept.text:
                return BindingValidationResult(
                    valid=False, message="CodeableConcept has text but no coding for required binding"
                )
            return VALID

        results = await asyncio.gather(*(self.validate_coding(coding, binding) for coding in concept.coding))

        # Other codings may be translations into systems outside the ValueSet; one valid coding is enough.
        valid_results = [r for r in results if r.valid]
        if not valid_results:
            return BindingValidationResult(valid=False, message="; ".join(r.message for r in results if r.message))

        messages = [r.message for r in valid_results if r.message]
        display_warnings = [r.display_warning for r in valid_results if r.display_warning]
        return BindingValidationResult(
            valid=True,
            message="; ".join(messages) if messages else None,
            display_warning="; ".join(display_warnings) if display_warnings else None,
        )

    async def validate_code(self, code: str, binding: ElementDefinitionBinding) -> BindingValidationResult:
        return await self.validate_coding(Coding(code=code), binding)

    @add_validation_id_to_logger()
    async def binding_issues(
        self,
        value: Any,  # noqa: ANN401
        element_type: str,
        binding: ElementDefinitionBinding,
        path: str,
        *,
        include_warnings: bool = True,
    ) -> list[OperationOutcomeIssue]:
        """Validate one element value against its binding, reporting problems as OperationOutcome issues.

        `value` is the raw JSON of the element; `element_type` is its FHIR type code. Unsupported types are
        skipped."""
        if element_type == "CodeableConcept":
            result = await self.validate_codeable_concept(CodeableConcept.model_validate(value), binding)
        elif element_type == "Coding":
            result = await self.validate_coding(Coding.model_validate(value), binding)
        elif element_type in CODED_ELEMENT_TYPES:
            result = await self.validate_code(str(value), binding)
        else:
            return []

        issues = []
        if not result.valid or result.message:
            severity = binding_strength_to_severity(binding.strength)
            if severity is IssueSeverity.error or (severity is IssueSeverity.warning and include_warnings):
                issues.append(
                    OperationOutcomeIssue(
                        severity=severity,
                        code=CODE_INVALID_ISSUE,
                        diagnostics=result.message or "Value does not match binding",
                        location=[path],
                    )
                )
        if result.display_warning and include_warnings:
            issues.append(
                OperationOutcomeIssue(
                    severity=IssueSeverity.warning,
                    code=CODE_INVALID_ISSUE,
                    diagnostics=result.display_warning,
                    location=[path],
                )
            )
        return issues

    async def binding_outcome(
        self,
        value: Any,  # noqa: ANN401
        element_type: str,
        binding: ElementDefinitionBinding,
        path: str,
        *,
        include_warnings: bool = True,
    ) -> OperationOutcome:
        issues = await self.binding_issues(value, element_type, binding, path, include_warnings=include_warnings)
        return operation_outcome(issues)

    def validate_display(self, coding: Coding) -> str | None:
        """Warning text when a coding's display isn't one its CodeSystem defines for the code.

        Comparison is case-sensitive. Nothing is reported when the CodeSystem, the code or its displays are
        unknown."""
        if not (coding.display and coding.code and coding.system):
            return None
        code_system = self.registry.get_code_system(coding.system)
        concept = code_system.find(coding.code) if code_system else None
        if concept is None or not (valid_displays := concept.displays):
            return None
        if coding.display in valid_displays:
            return None
        quoted = ", ".join(f"'{d}'" for d in valid_displays)
        return (
            f"Display '{coding.display}' is not a valid display for code '{coding.code}'. Valid display(s): {quoted}"
        )

    def _is_code_in_value_set(
        self, coding: Coding, value_set: ValueSet, visited: frozenset[str] = frozenset()
    ) -> bool:
        if not coding.code:
            return False
        if value_set.expansion and value_set.expansion.contains:
            return _in_expansion(coding, value_set.expansion.contains)
        if value_set.compose:
            return self._in_compose(coding, value_set.compose, visited | {value_set.url.split("|")[0]})
        # No expansion or compose to check against
        return True

    def _in_compose(self, coding: Coding, compose: ValueSetCompose, visited: frozenset[str]) -> bool:
        if not any(self._matches_include(coding, include, visited) for include in compose.include):
            return False
        return not any(self._matches_include(coding, exclude, visited) for exclude in compose.exclude)

    def _matches_include(self, coding: Coding, include: ValueSetInclude, visited: frozenset[str]) -> bool:
        if include.system and coding.system and include.system != coding.system:
            return False

        if include.concept is not None:
            return any(concept.code == coding.code for concept in include.concept)

        if include.value_set is not None:
            # A ValueSet already being expanded further up contributes no codes.
            return any(
                url.split("|")[0] not in visited
                and (value_set := self.registry.get_value_set(url)) is not None
                and self._is_code_in_value_set(coding, value_set, visited)
                for url in include.value_set
            )

        # Filters are not evaluated; membership of the CodeSystem is the best available check.
        if include.system:
            code_system = self.registry.get_code_system(include.system)
            return code_system is None or code_system.find(coding.code or "") is not None

        return bool(include.filter)


def _in_expansion(coding: Coding, contains: list[ValueSetContains]) -> bool:
    for item in contains:
        if item.code == coding.code and not (coding.system and item.system and coding.system != item.system):
            return True
        if item.contains and _in_expansion(coding, item.contains):
            return True
    return False


@service
def binding_validator_factory(
    terminology_client: Annotated[TerminologyClient, Inject()],
    registry: Annotated[TerminologyRegistry, Inject()],
) -> BindingValidator:
    return BindingValidator(terminology_client, registry)
