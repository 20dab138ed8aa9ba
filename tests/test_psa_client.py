"""Tests for the PSA certificate client."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx

from cardintake.models.failure import FailureKind
from cardintake.services.psa_client import PSAClient, record_from_payload

PSA_BASE = "https://psa.test/publicapi/cert"
CERT_URL = f"{PSA_BASE}/GetByCertNumber/12345678"

LUGIA_CERT = {
    "PSACert": {
        "CertNumber": "12345678",
        "SpecID": 7654321,
        "Year": "2022",
        "Brand": "POKEMON SWORD & SHIELD SILVER TEMPEST",
        "Category": "TCG CARDS",
        "CardNumber": "186",
        "Subject": "FA/LUGIA V",
        "CardGrade": "GEM MT 10",
        "LabelType": "LighthouseLabel",
        "TotalPopulation": 1532,
        "TotalPopulationWithQualifier": 0,
        "PopulationHigher": 0,
    }
}


@pytest.fixture
def client() -> PSAClient:
    return PSAClient(PSA_BASE, token="secret", initial_delay=0)


class TestRecordFromPayload:
    def test_maps_cert_fields(self) -> None:
        record = record_from_payload(LUGIA_CERT, "12345678")

        assert record is not None
        assert record.name == "FA/LUGIA V"
        assert record.set == "POKEMON SWORD & SHIELD SILVER TEMPEST"
        assert record.grade == "GEM MT 10"
        assert record.number == "186"
        assert record.cert == "12345678"
        assert record.population is not None
        assert record.population.total == 1532
        assert record.population.higher == 0
        assert record.spec_id == 7654321

    def test_front_image_fallback(self) -> None:
        payload = {"PSACert": {"Subject": "MEW", "FrontImageURL": "https://img/front.jpg"}}

        record = record_from_payload(payload, "12345678")

        assert record is not None
        assert record.image_url == "https://img/front.jpg"
        assert record.cert == "12345678"

    def test_missing_cert(self) -> None:
        assert record_from_payload({}, "12345678") is None
        assert record_from_payload({"PSACert": None}, "12345678") is None


class TestFetchCert:
    @respx.mock
    async def test_success(self, client: PSAClient) -> None:
        route = respx.get(CERT_URL).mock(return_value=httpx.Response(200, json=LUGIA_CERT))

        result = await client.fetch_cert("12345678")

        assert result.success
        assert result.record is not None
        assert result.record.name == "FA/LUGIA V"
        assert route.calls.last.request.headers["Authorization"] == "Bearer secret"

    @respx.mock
    async def test_no_token_no_auth_header(self) -> None:
        route = respx.get(CERT_URL).mock(return_value=httpx.Response(200, json=LUGIA_CERT))

        await PSAClient(PSA_BASE, token="").fetch_cert("12345678")

        assert "Authorization" not in route.calls.last.request.headers

    async def test_invalid_cert_makes_no_request(self, client: PSAClient) -> None:
        result = await client.fetch_cert("12AB")

        assert not result.success
        assert result.failure_kind is FailureKind.INVALID_INPUT

    @respx.mock
    async def test_404_is_not_found(self, client: PSAClient) -> None:
        respx.get(CERT_URL).mock(return_value=httpx.Response(404))

        result = await client.fetch_cert("12345678")

        assert result.failure_kind is FailureKind.NOT_FOUND
        assert result.error == "PSA certification not found"

    @respx.mock
    async def test_empty_body_is_not_found(self, client: PSAClient) -> None:
        respx.get(CERT_URL).mock(return_value=httpx.Response(200, json={}))

        result = await client.fetch_cert("12345678")

        assert result.failure_kind is FailureKind.NOT_FOUND

    @respx.mock
    async def test_server_error(self, client: PSAClient) -> None:
        respx.get(CERT_URL).mock(return_value=httpx.Response(500))

        result = await client.fetch_cert("12345678")

        assert result.failure_kind is FailureKind.EXTERNAL_API_ERROR
        assert result.error == "PSA API error: 500"

    @respx.mock
    async def test_rate_limit_retried(self, client: PSAClient) -> None:
        """HTTP 429 backs off and retries."""
        route = respx.get(CERT_URL).mock(
            side_effect=[httpx.Response(429), httpx.Response(200, json=LUGIA_CERT)]
        )

        result = await client.fetch_cert("12345678")

        assert result.success
        assert route.call_count == 2

    @respx.mock
    async def test_rate_limit_exhausted(self, client: PSAClient) -> None:
        route = respx.get(CERT_URL).mock(return_value=httpx.Response(429))

        result = await client.fetch_cert("12345678")

        assert result.failure_kind is FailureKind.RATE_LIMITED
        assert route.call_count == 3

    @respx.mock
    async def test_no_backoff_after_final_attempt(self) -> None:
        """Backoff only happens between attempts, never after the last 429."""
        respx.get(CERT_URL).mock(return_value=httpx.Response(429))
        client = PSAClient(PSA_BASE, token="secret", max_retries=3, initial_delay=1.0)

        with patch("cardintake.services.psa_client.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await client.fetch_cert("12345678")

        assert result.failure_kind is FailureKind.RATE_LIMITED
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @respx.mock
    async def test_timeout(self, client: PSAClient) -> None:
        respx.get(CERT_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        result = await client.fetch_cert("12345678")

        assert result.failure_kind is FailureKind.TIMEOUT

    @respx.mock
    async def test_network_error(self, client: PSAClient) -> None:
        respx.get(CERT_URL).mock(side_effect=httpx.ConnectError("refused"))

        result = await client.fetch_cert("12345678")

        assert result.failure_kind is FailureKind.NETWORK_ERROR

    @respx.mock
    async def test_invalid_json(self, client: PSAClient) -> None:
        respx.get(CERT_URL).mock(return_value=httpx.Response(200, text="<html>"))

        result = await client.fetch_cert("12345678")

        assert result.failure_kind is FailureKind.EXTERNAL_API_ERROR
