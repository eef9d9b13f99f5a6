import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from types import TracebackType
from typing import Annotated, Self

import httpx
from pydantic import ValidationError
from wireup import Inject, service
from yarl import URL

from fhir_terminology.common.cache import ExpiringLruCache
from fhir_terminology.config.config import CacheSize, CacheTtlMs, TimeoutMs
from fhir_terminology.config.constants import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_CACHE_TTL_MS,
    DEFAULT_TIMEOUT_MS,
    FHIR_JSON_MEDIA_TYPE,
    VALIDATE_CODE_PATH,
)
from fhir_terminology.model.parameters import Parameters
from fhir_terminology.model.terminology import CacheStats, ValidationOutcome, ValidationRequest

logger = logging.getLogger(__name__)


class TerminologyProtocolError(Exception):
    """The terminology server answered, but not with a usable `$validate-code` result."""


class TerminologyClient:
    """Client for the `ValueSet/$validate-code` operation of a remote FHIR terminology server.

    Completed answers, valid or not, are cached per (ValueSet, system, code) for `cache_ttl_ms`. When the server
    can't give an answer (timeout, transport error, error status, unexpected body) the client fails open: the
    code is assumed valid, `was_validated` is false, and nothing is cached so the next lookup tries again.
    """

    def __init__(
        self,
        base_url: str | URL,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        cache_size: int = DEFAULT_CACHE_SIZE,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        super().__init__()
        self.base_url = str(base_url).rstrip("/")
        self.timeout_ms = timeout_ms
        self._cache: ExpiringLruCache[ValidationOutcome] = ExpiringLruCache(cache_size, cache_ttl_ms, clock)
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout_ms / 1000)

    @property
    def validate_code_url(self) -> str:
        return f"{self.base_url}/{VALIDATE_CODE_PATH}"

    async def validate(self, request: ValidationRequest) -> ValidationOutcome:
        cache_key = request.cache_key
        if (cached := self._cache.get(cache_key)) is not None:
            return cached

        try:
            async with asyncio.timeout(self.timeout_ms / 1000):
                parameters = await self._validate_code(request)
            outcome = self._to_outcome(parameters)
        except TimeoutError:
            reason = f"Terminology server did not respond within {self.timeout_ms}ms"
            logger.warning(reason, extra={"cache_key": cache_key, "reason": "timeout"})
            return ValidationOutcome.unverified(reason)
        except httpx.HTTPStatusError as e:
            reason = f"Terminology server returned HTTP {e.response.status_code}"
            logger.warning(
                reason, extra={"cache_key": cache_key, "reason": "status", "status_code": e.response.status_code}
            )
            return ValidationOutcome.unverified(reason)
        except httpx.HTTPError as e:
            reason = f"Terminology server unreachable: {e!r}"
            logger.warning(reason, extra={"cache_key": cache_key, "reason": "transport"})
            return ValidationOutcome.unverified(reason)
        except TerminologyProtocolError as e:
            reason = f"Unusable terminology server response: {e}"
            logger.warning(reason, extra={"cache_key": cache_key, "reason": "protocol"})
            return ValidationOutcome.unverified(reason)

        self._cache.set(cache_key, outcome)
        logger.debug("Code validated", extra={"cache_key": cache_key, "is_valid": outcome.is_valid})
        return outcome

    async def _validate_code(self, request: ValidationRequest) -> Parameters:
        params = {"url": request.value_set_url, "code": request.code}
        if request.system:
            params["system"] = request.system
        if request.display:
            params["display"] = request.display

        response = await self._http_client.get(
            self.validate_code_url, params=params, headers={"Accept": FHIR_JSON_MEDIA_TYPE}
        )
        response.raise_for_status()

        try:
            return Parameters.model_validate(response.json())
        except ValidationError as e:
            message = f"expected a Parameters resource ({e.error_count()} validation errors)"
            raise TerminologyProtocolError(message) from e
        except ValueError as e:
            message = "response body is not JSON"
            raise TerminologyProtocolError(message) from e

    @staticmethod
    def _to_outcome(parameters: Parameters) -> ValidationOutcome:
        result = parameters.boolean("result")
        if result is None:
            message = "no boolean 'result' parameter"
            raise TerminologyProtocolError(message)
        return ValidationOutcome(
            is_valid=result,
            was_validated=True,
            message=parameters.string("message"),
            display=parameters.string("display"),
        )

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return CacheStats(size=len(self._cache), max_size=self._cache.max_size)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()


@service
async def terminology_client_factory(
    base_url: Annotated[URL, Inject(param="terminology_server_url")],
    timeout_ms: Annotated[TimeoutMs, Inject(param="terminology_timeout_ms")],
    cache_ttl_ms: Annotated[CacheTtlMs, Inject(param="terminology_cache_ttl_ms")],
    cache_size: Annotated[CacheSize, Inject(param="terminology_cache_size")],
) -> AsyncIterator[TerminologyClient]:
    client = TerminologyClient(base_url, timeout_ms=timeout_ms, cache_ttl_ms=cache_ttl_ms, cache_size=cache_size)
    logger.info("terminology client %s", client.base_url, extra={"base_url": client.base_url})
    try:
        yield client
    finally:
        await client.aclose()
