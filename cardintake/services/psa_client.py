"""
PSA certificate lookup client.

Fetches certificate data from PSA's public API and normalizes it into a
RawPSARecord. Failures come back as a PSAFetchResult with a failure kind;
nothing here raises for a missing cert or a flaky network.

API: https://api.psacard.com/publicapi/cert/GetByCertNumber/{cert}
"""

import asyncio
import json
import logging
from typing import Any

import httpx

from cardintake.config import settings
from cardintake.models.card_identity import PSAPopulation, RawPSARecord
from cardintake.models.failure import FailureKind
from cardintake.models.lookup import PSAFetchResult
from cardintake.parsers.psa_record import is_psa_cert_number

logger = logging.getLogger(__name__)

USER_AGENT = "CardIntake/1.0"

NOT_FOUND_MESSAGE = "PSA certification not found"
RATE_LIMITED_MESSAGE = "PSA API rate limited. Please try again in a moment."
INVALID_CERT_MESSAGE = "Invalid PSA cert number. Must be 7-9 digits."


def _int_or_none(value: Any) -> int | None:
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def _str_or_none(value: Any) -> str | None:
    return str(value) if value not in (None, "") else None


def record_from_payload(payload: dict[str, Any], cert_number: str) -> RawPSARecord | None:
    """
    Normalize a GetByCertNumber response body.

    Args:
        payload: Decoded JSON body
        cert_number: The cert number that was requested

    Returns:
        RawPSARecord, or None when the body carries no PSACert
    """
    cert = payload.get("PSACert") if isinstance(payload, dict) else None
    if not cert:
        return None

    image_url = cert.get("ImageURL") or cert.get("FrontImageURL") or None

    return RawPSARecord(
        name=cert.get("Subject") or cert.get("CardDescription") or "",
        set=cert.get("SetName") or cert.get("Brand") or "",
        grade=_str_or_none(cert.get("CardGrade")) or "",
        number=_str_or_none(cert.get("CardNumber")) or "",
        cert=_str_or_none(cert.get("CertNumber")) or cert_number,
        image_url=image_url,
        population=PSAPopulation(
            total=_int_or_none(cert.get("TotalPopulation")),
            total_with_qualifier=_int_or_none(cert.get("TotalPopulationWithQualifier")),
            higher=_int_or_none(cert.get("PopulationHigher")),
        ),
        spec_id=_int_or_none(cert.get("SpecID")),
        year=_str_or_none(cert.get("Year")),
        category=_str_or_none(cert.get("Category")),
        label_type=_str_or_none(cert.get("LabelType")),
    )


class PSAClient:
    """
    Client for PSA's public certificate API.

    Retries HTTP 429 with exponential backoff (initial_delay * 2**attempt);
    every other failure is returned immediately.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        max_retries: int | None = None,
        initial_delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.psa_api_base).rstrip("/")
        self.token = settings.psa_api_token if token is None else token
        self.max_retries = max_retries if max_retries is not None else settings.psa_max_retries
        self.initial_delay = (
            initial_delay if initial_delay is not None else settings.psa_initial_retry_delay_s
        )
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, headers=self._headers())
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, headers=self._headers())

    async def fetch_cert(self, cert_number: str) -> PSAFetchResult:
        """
        Fetch a certificate by number.

        Args:
            cert_number: 7-9 digit PSA certification number

        Returns:
            PSAFetchResult with the record, or a failure kind and message
        """
        cert_number = (cert_number or "").strip()
        if not is_psa_cert_number(cert_number):
            return PSAFetchResult(
                success=False,
                error=INVALID_CERT_MESSAGE,
                failure_kind=FailureKind.INVALID_INPUT,
            )

        url = f"{self.base_url}/GetByCertNumber/{cert_number}"

        for attempt in range(self.max_retries):
            try:
                response = await self._get(url)
            except httpx.TimeoutException as exc:
                logger.warning("PSA lookup for %s timed out: %s", cert_number, exc)
                return PSAFetchResult(
                    success=False,
                    error="PSA lookup timed out",
                    failure_kind=FailureKind.TIMEOUT,
                )
            except httpx.RequestError as exc:
                logger.warning("PSA lookup for %s failed: %s", cert_number, exc)
                return PSAFetchResult(
                    success=False,
                    error=f"Failed to fetch PSA data: {exc}",
                    failure_kind=FailureKind.NETWORK_ERROR,
                )

            if response.status_code == 429:
                if attempt == self.max_retries - 1:
                    break
                delay = self.initial_delay * (2**attempt)
                logger.warning(
                    "PSA rate limited, retrying in %.1fs (attempt %d/%d)",
                    delay,
                    attempt + 1,
                    self.max_retries,
                )
                await asyncio.sleep(delay)
                continue

            if response.status_code == 404:
                logger.info("PSA cert %s not found", cert_number)
                return PSAFetchResult(
                    success=False, error=NOT_FOUND_MESSAGE, failure_kind=FailureKind.NOT_FOUND
                )

            if not response.is_success:
                return PSAFetchResult(
                    success=False,
                    error=f"PSA API error: {response.status_code}",
                    failure_kind=FailureKind.EXTERNAL_API_ERROR,
                )

            try:
                payload = response.json()
            except json.JSONDecodeError:
                return PSAFetchResult(
                    success=False,
                    error="Invalid JSON response from PSA",
                    failure_kind=FailureKind.EXTERNAL_API_ERROR,
                )

            record = record_from_payload(payload, cert_number)
            if record is None:
                return PSAFetchResult(
                    success=False, error=NOT_FOUND_MESSAGE, failure_kind=FailureKind.NOT_FOUND
                )

            logger.info("Fetched PSA cert %s: %s", cert_number, record.name)
            return PSAFetchResult(success=True, record=record)

        return PSAFetchResult(
            success=False, error=RATE_LIMITED_MESSAGE, failure_kind=FailureKind.RATE_LIMITED
        )
