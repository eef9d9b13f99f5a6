import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from contextvars import ContextVar
from functools import wraps
from typing import Any

from pythonjsonlogger.json import JsonFormatter

from fhir_terminology.config.config import LOG_LEVEL

validation_id_context_var: ContextVar[str | None] = ContextVar("validation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s %(module)s.py:%(funcName)s():%(lineno)d %(message)s"


def add_validation_id_to_logger() -> Callable:
    """Tag every record logged while the wrapped coroutine runs with a fresh validation id.

    Nested calls keep the outermost id, so all the codings of one CodeableConcept share it."""

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:  # noqa: ANN401
            if validation_id_context_var.get() is not None:
                return await func(*args, **kwargs)
            token = validation_id_context_var.set(str(uuid.uuid4()))
            try:
                return await func(*args, **kwargs)
            finally:
                validation_id_context_var.reset(token)

        return wrapper

    return decorator


class EnrichedJsonFormatter(JsonFormatter):
    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        log_record["validation_id"] = validation_id_context_var.get() or "-"
        super().add_fields(log_record, record, message_dict)


def init_logging(quieten: Sequence[str] = ("asyncio", "httpx", "httpcore")) -> None:
    formatter = EnrichedJsonFormatter(LOG_FORMAT)
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logging.root.handlers = []  # Remove default handlers
    logging.root.setLevel(LOG_LEVEL)
    logging.root.addHandler(handler)

    for q in quieten:
        logging.getLogger(q).setLevel(logging.WARNING)
