"""FastAPI application serving the live-rate proxy and provider comparison."""

import logging
from typing import Annotated, Final

import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from ..calculator.comparison import compare_providers
from ..calculator.formatting import format_as_inr, format_rate
from ..calculator.models import ComparisonSummary, ProviderId, ProviderQuote
from ..shared.constants import (
    DEFAULT_BANK_RATE,
    DEFAULT_PAYPAL_RATE,
    LIVE_RATE_FALLBACK,
    MAX_USD,
    MAX_VALID_RATE,
    MIN_USD,
    PLATFORM_FEE_MAX,
    PLATFORM_FEE_MIN,
)
from .models import CompareResponse, ErrorResponse, FormattedRow, LiveRateResponse
from .settings import api_settings
from .upstream import UpstreamError, UpstreamRateProvider

ERROR_UPSTREAM: Final[str] = "upstream_error"
ERROR_INTERNAL_ERROR: Final[str] = "internal_error"
ERROR_NOT_FOUND: Final[str] = "not_found"

logger = logging.getLogger(__name__)

_upstream_provider = UpstreamRateProvider()


def get_upstream_provider() -> UpstreamRateProvider:
    """
    Dependency function to provide the upstream rate provider.

    Returns:
        UpstreamRateProvider: Process-wide provider so its cache is shared
    """
    return _upstream_provider


RateQuery = Annotated[float, Query(gt=0, lt=MAX_VALID_RATE)]


app = FastAPI(
    title="Karbon FX API",
    description="Live USD/INR rate proxy and zero-markup savings comparison",
    version="1.0.0",
)


@app.get("/", response_model=dict[str, str])
async def root() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        dict[str, str]: Health status information
    """
    return {"message": "Karbon FX API is running", "status": "healthy"}


@app.get("/api/live-rate", response_model=LiveRateResponse)
async def live_rate(
    provider: Annotated[UpstreamRateProvider, Depends(get_upstream_provider)],
) -> LiveRateResponse | JSONResponse:
    """
    Return the current USD/INR rate from the third-party API.

    The answer is reused for the configured revalidation window, so clients
    polling this endpoint do not hit the upstream on every request.

    Returns:
        LiveRateResponse: Rate and upstream update timestamp, or a JSON error
        body with status 500 (misconfiguration) or 502 (bad upstream answer)
    """
    try:
        return await provider.get_live_rate()
    except UpstreamError as e:
        logger.warning(f"Live rate unavailable: {e.message}")
        return JSONResponse(
            status_code=e.status_code,
            content=ErrorResponse(
                error=ERROR_UPSTREAM, message=e.message, details=e.details
            ).model_dump(),
        )


def _formatted_rows(summary: ComparisonSummary) -> list[FormattedRow]:
    return [
        FormattedRow(
            provider=str(result.provider_id),
            offered_rate=format_rate(result.offered_rate),
            markup_per_usd=format_rate(result.markup_per_usd),
            total_local=format_as_inr(result.total_local),
            savings=format_as_inr(result.savings_vs_reference),
            is_best=result.is_best,
        )
        for result in summary.results
    ]


@app.get("/api/compare", response_model=CompareResponse)
async def compare(
    provider: Annotated[UpstreamRateProvider, Depends(get_upstream_provider)],
    amount: Annotated[
        float, Query(ge=MIN_USD, le=MAX_USD, description="USD amount to convert")
    ],
    bank_rate: RateQuery = DEFAULT_BANK_RATE,
    paypal_rate: RateQuery = DEFAULT_PAYPAL_RATE,
    platform_fee: Annotated[
        float, Query(ge=PLATFORM_FEE_MIN, le=PLATFORM_FEE_MAX)
    ] = 0.0,
    include_fees: bool = False,
    bank_charges: Annotated[float, Query(ge=0)] = 0.0,
) -> CompareResponse:
    """
    Compare bank and PayPal quotes with the zero-markup live rate.

    When the upstream rate is unavailable the hardcoded fallback rate is used
    and reported through ``rate_source``.

    Raises:
        HTTPException: 422 for out-of-range parameters
    """
    try:
        rate = (await provider.get_live_rate()).rate
        rate_source = "api"
    except UpstreamError as e:
        logger.warning(f"Comparing against fallback rate: {e.message}")
        rate = LIVE_RATE_FALLBACK
        rate_source = "fallback"

    quotes = [
        ProviderQuote.competitor(ProviderId.BANK, bank_rate),
        ProviderQuote.competitor(ProviderId.PAYPAL, paypal_rate),
    ]
    summary = compare_providers(
        amount,
        rate,
        quotes,
        platform_fee_percent=platform_fee,
        include_fees=include_fees,
        bank_user_charges=bank_charges,
    )
    return CompareResponse(
        rate_source=rate_source,
        summary=summary,
        formatted=_formatted_rows(summary),
    )


@app.exception_handler(404)
async def not_found_handler(_: Request, __: Exception) -> JSONResponse:
    """Handle 404 errors.

    Returns:
        JSONResponse: Error response in JSON format
    """
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(
            error=ERROR_NOT_FOUND, message="Endpoint not found"
        ).model_dump(),
    )


@app.exception_handler(500)
async def internal_error_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle internal server errors.

    Args:
        exc: The exception that was raised

    Returns:
        JSONResponse: Error response in JSON format
    """
    logger.error(f"Internal server error: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ERROR_INTERNAL_ERROR, message="An internal server error occurred"
        ).model_dump(),
    )


async def main() -> None:
    """Main entry point for the API server."""
    config = uvicorn.Config(
        app,
        host=api_settings.api_host,
        port=api_settings.api_port,
        log_level=api_settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
