import json
import logging
from pathlib import Path
from typing import Annotated, Any

from wireup import Inject, service

from fhir_terminology.model.terminology_resources import CodeSystem, ValueSet

logger = logging.getLogger(__name__)


def _canonical(url: str) -> str:
    return url.split("|")[0]


class TerminologyRegistry:
    """ValueSets and CodeSystems bundled with the validator, looked up by canonical URL.

    Resources usually come from the JSON files of a FHIR package or implementation guide."""

    def __init__(self) -> None:
        super().__init__()
        self._value_sets: dict[str, ValueSet] = {}
        self._code_systems: dict[str, CodeSystem] = {}

    def add(self, resource: dict[str, Any]) -> None:
        match resource.get("resourceType"):
            case "ValueSet":
                value_set = ValueSet.model_validate(resource)
                self._value_sets[_canonical(value_set.url)] = value_set
            case "CodeSystem":
                code_system = CodeSystem.model_validate(resource)
                self._code_systems[_canonical(code_system.url)] = code_system
            case "Bundle":
                for entry in resource.get("entry", []):
                    if entry_resource := entry.get("resource"):
                        self.add(entry_resource)
            case other:
                logger.debug("Ignoring %s resource", other, extra={"resource_type": other})

    def load_directory(self, directory: Path) -> None:
        for path in sorted(directory.glob("*.json")):
            try:
                resource = json.loads(path.read_text(encoding="utf-8"))
                if not isinstance(resource, dict):
                    message = "not a JSON object"
                    raise ValueError(message)
                self.add(resource)
            except ValueError:
                logger.warning("Skipping unreadable terminology resource %s", path, extra={"path": str(path)})
        logger.info(
            "Loaded terminology resources",
            extra={
                "directory": str(directory),
                "value_set_count": len(self._value_sets),
                "code_system_count": len(self._code_systems),
            },
        )

    def get_value_set(self, url: str) -> ValueSet | None:
        return self._value_sets.get(_canonical(url))

    def get_code_system(self, url: str) -> CodeSystem | None:
        return self._code_systems.get(_canonical(url))


@service
def terminology_registry_factory(
    value_set_directory: Annotated[Path | None, Inject(param="value_set_directory")],
) -> TerminologyRegistry:
    registry = TerminologyRegistry()
    if value_set_directory:
        registry.load_directory(value_set_directory)
    return registry
