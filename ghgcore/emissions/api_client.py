# -*- coding: utf-8 -*-
"""
Emissions Backend API Client

Async HTTP client for the emissions backend REST API. It implements the
three collaborator interfaces the engines depend on, so a single client can
be injected as factor provider, calculation store and metrics source.

Endpoints:
    GET  /emissions/factors
    GET  /emissions/calculations
    GET  /emissions/calculations/{id}
    POST /emissions/calculations/{id}/approve
    GET  /emissions/calculations/{id}/audit-trail
    GET  /emissions/validation/metrics

Failures are mapped onto the ghgcore exception hierarchy:
    timeout            -> RequestTimeoutError
    HTTP 4xx/5xx       -> DataAccessError (status_code set)
    transport failure  -> DataAccessError
    malformed payload  -> InvalidSchema

The client never retries; ``is_retriable`` tells the caller whether a retry
makes sense.

Example:
    >>> async with EmissionsApiClient(token="...") as client:
    ...     factors = await client.get_emissions_factors(fuel_type="diesel")
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ghgcore.emissions.config import EmissionsEngineConfig, get_config
from ghgcore.emissions.interfaces import (
    CalculationStore,
    EmissionFactorProvider,
    ValidationMetricsSource,
)
from ghgcore.emissions.models import (
    AuditTrailEvent,
    CalculationApprovalRequest,
    CalculationFilters,
    CalculationSummary,
    EmissionCalculation,
    EmissionFactor,
    ValidationMetrics,
    format_error_location,
)
from ghgcore.exceptions import DataAccessError, InvalidSchema, RequestTimeoutError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error message from a backend error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    return response.reason_phrase


class EmissionsApiClient(EmissionFactorProvider, CalculationStore, ValidationMetricsSource):
    """
    httpx-based client for the emissions backend.

    Args:
        base_url: API base URL (defaults to ``config.api_base_url``)
        token: Bearer token (defaults to ``config.api_token``)
        timeout_seconds: Per-request timeout (defaults to
            ``config.api_timeout_seconds``)
        config: Engine configuration (defaults to the global config)
        transport: Optional httpx transport, e.g. ``httpx.MockTransport``
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        config: Optional[EmissionsEngineConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        cfg = config or get_config()
        self.base_url = (base_url or cfg.api_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else cfg.api_timeout_seconds

        headers = {"Accept": "application/json"}
        bearer = token if token is not None else cfg.api_token
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "EmissionsApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None if empty)."""
        try:
            response = await self._client.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error("%s timed out after %.1fs (%s %s)", operation, self.timeout_seconds, method, path)
            raise RequestTimeoutError(
                f"{operation} timed out after {self.timeout_seconds}s",
                data_source=self.base_url,
                operation=operation,
                cause=e,
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            detail = _error_detail(e.response)
            logger.error("%s failed with HTTP %d: %s", operation, status, detail)
            raise DataAccessError(
                f"{operation} failed with HTTP {status}: {detail}",
                data_source=self.base_url,
                operation=operation,
                status_code=status,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            logger.error("%s failed: %s", operation, e)
            raise DataAccessError(
                f"{operation} failed: {e}",
                data_source=self.base_url,
                operation=operation,
                cause=e,
            ) from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise InvalidSchema(
                f"{operation} returned a non-JSON response",
                context={"operation": operation, "body": response.text[:200]},
            ) from e

    @staticmethod
    def _parse(model: Type[ModelT], payload: Any, operation: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except PydanticValidationError as e:
            raise InvalidSchema(
                f"{operation} returned an unexpected {model.__name__} payload",
                context={"operation": operation},
                schema_errors=[
                    {"field": format_error_location(err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ],
            ) from e

    def _parse_list(
        self,
        model: Type[ModelT],
        payload: Any,
        operation: str,
        envelope_keys: Sequence[str],
    ) -> List[ModelT]:
        """Parse a bare list or a list wrapped in one of ``envelope_keys``."""
        items = payload
        if isinstance(payload, dict):
            items = next(
                (payload[k] for k in envelope_keys if isinstance(payload.get(k), list)),
                None,
            )
        if not isinstance(items, list):
            raise InvalidSchema(
                f"{operation} returned {type(payload).__name__}, expected a list",
                context={"operation": operation},
            )
        return [self._parse(model, item, operation) for item in items]

    # ------------------------------------------------------------------
    # EmissionFactorProvider
    # ------------------------------------------------------------------

    async def get_emissions_factors(
        self,
        source: Optional[str] = None,
        category: Optional[str] = None,
        fuel_type: Optional[str] = None,
        electricity_region: Optional[str] = None,
    ) -> List[EmissionFactor]:
        params = {
            key: value
            for key, value in (
                ("source", source),
                ("category", category),
                ("fuel_type", fuel_type),
                ("electricity_region", electricity_region),
            )
            if value is not None
        }
        payload = await self._request(
            "GET", "/emissions/factors", "get_emissions_factors", params=params,
        )
        return self._parse_list(
            EmissionFactor, payload, "get_emissions_factors", ("factors", "items", "data"),
        )

    # ------------------------------------------------------------------
    # CalculationStore
    # ------------------------------------------------------------------

    async def get_calculations(
        self, filters: Optional[CalculationFilters] = None
    ) -> List[CalculationSummary]:
        params = filters.to_query_params() if filters else None
        payload = await self._request(
            "GET", "/emissions/calculations", "get_calculations", params=params,
        )
        return self._parse_list(
            CalculationSummary, payload, "get_calculations", ("calculations", "items", "data"),
        )

    async def get_calculation(self, calculation_id: str) -> EmissionCalculation:
        payload = await self._request(
            "GET", f"/emissions/calculations/{calculation_id}", "get_calculation",
        )
        return self._parse(EmissionCalculation, payload, "get_calculation")

    async def approve_calculation(
        self, calculation_id: str, approval: CalculationApprovalRequest
    ) -> None:
        await self._request(
            "POST",
            f"/emissions/calculations/{calculation_id}/approve",
            "approve_calculation",
            json=approval.model_dump(mode="json", exclude_none=True),
        )
        logger.info(
            "Submitted %s decision for calculation %s",
            approval.decision.value, calculation_id,
        )

    async def get_audit_trail(self, calculation_id: str) -> List[AuditTrailEvent]:
        payload = await self._request(
            "GET",
            f"/emissions/calculations/{calculation_id}/audit-trail",
            "get_audit_trail",
        )
        return self._parse_list(
            AuditTrailEvent, payload, "get_audit_trail", ("events", "items", "data"),
        )

    # ------------------------------------------------------------------
    # ValidationMetricsSource
    # ------------------------------------------------------------------

    async def get_validation_metrics(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ValidationMetrics:
        params = {}
        if start_date is not None:
            params["start_date"] = start_date.isoformat()
        if end_date is not None:
            params["end_date"] = end_date.isoformat()
        payload = await self._request(
            "GET", "/emissions/validation/metrics", "get_validation_metrics", params=params,
        )
        return self._parse(ValidationMetrics, payload, "get_validation_metrics")


__all__ = ["EmissionsApiClient"]
