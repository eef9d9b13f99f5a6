from typing import Final

FHIR_JSON_MEDIA_TYPE: Final = "application/fhir+json"
VALIDATE_CODE_PATH: Final = "ValueSet/$validate-code"
CACHE_KEY_SEPARATOR: Final = "|"

DEFAULT_TERMINOLOGY_SERVER_URL: Final = "https://tx.fhir.org/r4"
DEFAULT_TIMEOUT_MS: Final = 10_000
DEFAULT_CACHE_TTL_MS: Final = 3_600_000
DEFAULT_CACHE_SIZE: Final = 1000

CODE_INVALID_ISSUE: Final = "code-invalid"
