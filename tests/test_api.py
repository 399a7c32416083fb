"""Integration tests for the FastAPI application.

Uses ``httpx.AsyncClient`` (via ``pytest-asyncio``) against the ASGI app; the
lifespan is bypassed and templates are loaded directly from the test config.
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from omegaconf import DictConfig

from cert_compliance.core.comparison import ComplianceComparator
from cert_compliance.core.parser import CertificateParser
from cert_compliance.core.templates import load_templates
from cert_compliance.schemas.requirement import RequirementTemplate

# ---------------------------------------------------------------------------
# App fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def app(test_cfg: DictConfig) -> FastAPI:
    """Bare app with the compliance router and state populated."""
    from cert_compliance.api.routes.compliance import router as compliance_router

    _app = FastAPI(title="test")
    _app.state.cfg = test_cfg
    _app.state.parser = CertificateParser(amount_window=test_cfg.parser.amount_window)
    _app.state.comparator = ComplianceComparator()
    _app.state.templates = load_templates(test_cfg.data.templates_dir)
    _app.include_router(compliance_router, prefix="/api/v1")
    return _app


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ═══════════════════════════════════════════════════════════════════════
# Tests
# ═══════════════════════════════════════════════════════════════════════


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy", "templates": 2}


class TestReferenceEndpoints:
    @pytest.mark.asyncio
    async def test_templates(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/templates")
        assert resp.status_code == 200
        names = [t["name"] for t in resp.json()["templates"]]
        assert names == ["consultant", "contractor"]

    @pytest.mark.asyncio
    async def test_single_template(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/templates/contractor")
        assert resp.status_code == 200
        body = resp.json()
        assert body["nameHe"] == "קבלן"
        assert body["requirements"][0]["policyType"] == "GENERAL_LIABILITY"

    @pytest.mark.asyncio
    async def test_unknown_template_404(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/templates/nope")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_policy_types(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/policy-types")
        types = {t["type"]: t["nameHe"] for t in resp.json()["policyTypes"]}
        assert types["GENERAL_LIABILITY"] == "צד שלישי"
        assert "UNKNOWN" not in types

    @pytest.mark.asyncio
    async def test_endorsement_codes(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/endorsement-codes")
        codes = resp.json()["endorsementCodes"]
        assert codes["318"]["en"] == "Additional insured - certificate requester"

    @pytest.mark.asyncio
    async def test_service_codes(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/service-codes")
        assert resp.json()["serviceCodes"]["040"]["en"] == "Engineer, Architect, Technician"


class TestParseCertificate:
    @pytest.mark.asyncio
    async def test_parse(self, client: AsyncClient, full_certificate_text: str) -> None:
        resp = await client.post("/api/v1/certificates/parse", json={"text": full_certificate_text})
        assert resp.status_code == 200
        body = resp.json()
        assert body["certificateNumber"] == "000050229"
        assert body["policies"][0]["coverageLimitPerPeriod"] == 5_000_000
        assert body["additionalInsured"]["waiverOfSubrogation"] is True

    @pytest.mark.asyncio
    async def test_missing_text_422(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/certificates/parse", json={})
        assert resp.status_code == 422


class TestComparisons:
    @pytest.mark.asyncio
    async def test_named_template(self, client: AsyncClient, full_certificate_text: str) -> None:
        parsed = (
            await client.post("/api/v1/certificates/parse", json={"text": full_certificate_text})
        ).json()
        resp = await client.post(
            "/api/v1/comparisons", json={"certificate": parsed, "templateName": "contractor"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["totalRequirements"] == 2
        assert body["policyResults"][0]["policyType"] == "GENERAL_LIABILITY"
        assert 0 <= body["complianceScore"] <= 100

    @pytest.mark.asyncio
    async def test_inline_template(
        self, client: AsyncClient, full_certificate_text: str, sample_template: RequirementTemplate
    ) -> None:
        parsed = (
            await client.post("/api/v1/certificates/parse", json={"text": full_certificate_text})
        ).json()
        resp = await client.post(
            "/api/v1/comparisons",
            json={
                "certificate": parsed,
                "template": sample_template.model_dump(mode="json", by_alias=True),
            },
        )
        assert resp.status_code == 200
        assert resp.json()["totalRequirements"] == 2

    @pytest.mark.asyncio
    async def test_unknown_template_name_404(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/comparisons", json={"certificate": {}, "templateName": "nope"}
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_no_template_422(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/comparisons", json={"certificate": {}})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_invalid_input_error_422(
        self, client: AsyncClient, app: FastAPI
    ) -> None:
        from cert_compliance.core.comparison import InvalidInputError

        app.state.comparator = MagicMock()
        app.state.comparator.compare.side_effect = InvalidInputError("bad template")
        resp = await client.post(
            "/api/v1/comparisons", json={"certificate": {}, "templateName": "contractor"}
        )
        assert resp.status_code == 422
        assert resp.json()["detail"] == "bad template"


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_analyze(self, client: AsyncClient, full_certificate_text: str) -> None:
        resp = await client.post(
            "/api/v1/analyze", json={"text": full_certificate_text, "templateName": "contractor"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["certificate"]["insurerName"] == "הפניקס"
        assert body["comparison"]["totalRequirements"] == 2


class TestAppFactory:
    @pytest_asyncio.fixture()
    async def factory_client(self, test_cfg: DictConfig) -> AsyncClient:
        from cert_compliance.api.app import create_app

        factory_app = create_app(test_cfg)
        factory_app.state.parser = MagicMock()
        factory_app.state.parser.parse.side_effect = RuntimeError("boom")
        transport = ASGITransport(app=factory_app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    @pytest.mark.asyncio
    async def test_health_through_middleware(self, factory_client: AsyncClient) -> None:
        resp = await factory_client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_unhandled_error_returns_500(self, factory_client: AsyncClient) -> None:
        resp = await factory_client.post("/api/v1/certificates/parse", json={"text": "x"})
        assert resp.status_code == 500
        assert resp.json() == {
            "detail": "Internal server error",
            "error": "RuntimeError",
            "path": "/api/v1/certificates/parse",
        }

    def test_noisy_loggers_quieted(self, test_cfg: DictConfig) -> None:
        from cert_compliance.api.app import create_app
        from cert_compliance.logging.setup import NOISY_LOGGERS

        create_app(test_cfg)
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
