from __future__ import annotations

import logging
from typing import Any

import wireup

from fhir_terminology import repos, services
from fhir_terminology.config.config import config
from fhir_terminology.logging.logs_manager import init_logging

init_logging()
logger = logging.getLogger(__name__)


def create_container(**overrides: Any) -> wireup.AsyncContainer:  # noqa: ANN401
    """Build the dependency injection container for terminology validation.

    Parameters come from the environment (see `config()`); keyword arguments override individual values."""
    parameters = {**config(), **overrides}
    container = wireup.create_async_container(service_modules=[repos, services], parameters=parameters)
    logger.info("terminology container ready", extra={"config": {k: str(v) for k, v in parameters.items()}})
    return container
