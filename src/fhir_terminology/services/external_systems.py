from typing import Final

EXTERNAL_CODE_SYSTEM_PREFIXES: Final = (
    "http://snomed.info/sct",
    "http://loinc.org",
    "http://www.nlm.nih.gov/research/umls/rxnorm",
    "http://hl7.org/fhir/sid/icd-9-cm",
    "http://hl7.org/fhir/sid/icd-10",
    "http://hl7.org/fhir/sid/icd-10-cm",
    "http://hl7.org/fhir/sid/icd-10-pcs",
    "http://id.who.int/icd",
    "http://www.ama-assn.org/go/cpt",
    "http://www.whocc.no/atc",
    "http://unitsofmeasure.org",
    "urn:ietf:bcp:47",
    "urn:iso:std:iso:3166",
    "urn:iso:std:iso:4217",
)


def requires_external_validation(system_uri: str) -> bool:
    """Whether codes from this code system can only be checked by a remote terminology server.

    These terminologies are too large (or too heavily licensed) to ship with the validator. Matching is an
    exact, case-sensitive prefix match on the raw URI."""
    return system_uri.startswith(EXTERNAL_CODE_SYSTEM_PREFIXES)
