from typing import Any

from polyfactory.factories import DataclassFactory

from fhir_terminology.model.terminology import Code, CodeSystemUri, ValidationRequest, ValueSetUrl


class ValidationRequestFactory(DataclassFactory[ValidationRequest]):
    code = Code("8867-4")
    system = CodeSystemUri("http://loinc.org")
    value_set_url = ValueSetUrl("http://hl7.org/fhir/ValueSet/observation-vitalsignresult")
    display = None


def validate_code_response(
    *, result: bool | None = True, message: str | None = None, display: str | None = None
) -> dict[str, Any]:
    """A `$validate-code` Parameters body as a terminology server would return it."""
    parameter: list[dict[str, Any]] = []
    if result is not None:
        parameter.append({"name": "result", "valueBoolean": result})
    if message is not None:
        parameter.append({"name": "message", "valueString": message})
    if display is not None:
        parameter.append({"name": "display", "valueString": display})
    return {"resourceType": "Parameters", "parameter": parameter}
