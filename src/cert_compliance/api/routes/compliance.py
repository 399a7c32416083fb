"""Certificate parsing and compliance API routes.

Endpoints
---------
POST /api/v1/certificates/parse
    Parse raw certificate text into ``ExtractedCertificateData``.

POST /api/v1/comparisons
    Compare an extracted certificate against an inline or named template.

POST /api/v1/analyze
    Parse and compare in one call.

GET  /api/v1/templates, /api/v1/templates/{name}
    Requirement templates loaded at startup.

GET  /api/v1/policy-types, /api/v1/endorsement-codes, /api/v1/service-codes
    Reference tables.

GET  /api/v1/health
    Lightweight health-check.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from loguru import logger
from pydantic import BaseModel, Field

from cert_compliance.core.codes import ENDORSEMENT_CODES, SERVICE_CODES
from cert_compliance.core.comparison import InvalidInputError
from cert_compliance.core.policy_types import hebrew_name
from cert_compliance.schemas.certificate import SCHEMA_CONFIG, ExtractedCertificateData, PolicyType
from cert_compliance.schemas.comparison import ComparisonResult
from cert_compliance.schemas.requirement import RequirementTemplate

router = APIRouter()


# ---------------------------------------------------------------------------
# Request / response bodies
# ---------------------------------------------------------------------------

class ParseRequest(BaseModel):
    model_config = SCHEMA_CONFIG

    text: str = Field(..., description="OCR text of the certificate")


class ComparisonRequest(BaseModel):
    model_config = SCHEMA_CONFIG

    certificate: ExtractedCertificateData
    template: Optional[RequirementTemplate] = None
    template_name: Optional[str] = Field(default=None, description="Name of a loaded template")


class AnalyzeRequest(BaseModel):
    model_config = SCHEMA_CONFIG

    text: str = Field(..., description="OCR text of the certificate")
    template: Optional[RequirementTemplate] = None
    template_name: Optional[str] = Field(default=None, description="Name of a loaded template")


class AnalyzeResponse(BaseModel):
    model_config = SCHEMA_CONFIG

    certificate: ExtractedCertificateData
    comparison: ComparisonResult


def _resolve_template(
    request: Request, template: Optional[RequirementTemplate], template_name: Optional[str]
) -> RequirementTemplate:
    if template is not None:
        return template
    if not template_name:
        raise HTTPException(status_code=422, detail="Either 'template' or 'templateName' is required")
    templates: dict[str, RequirementTemplate] = request.app.state.templates
    if template_name not in templates:
        logger.warning("Unknown template requested: {name}", name=template_name)
        raise HTTPException(status_code=404, detail=f"Template '{template_name}' not found")
    return templates[template_name]


def _run_comparison(
    request: Request, certificate: ExtractedCertificateData, template: RequirementTemplate
) -> ComparisonResult:
    try:
        return request.app.state.comparator.compare(certificate, template)
    except InvalidInputError as exc:
        logger.warning("Comparison rejected: {err}", err=str(exc))
        raise HTTPException(status_code=422, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# POST /certificates/parse
# ---------------------------------------------------------------------------

@router.post(
    "/certificates/parse",
    response_model=ExtractedCertificateData,
    summary="Parse a certificate",
    description="Extract policies and metadata from the OCR text of an insurance certificate.",
)
async def parse_certificate(body: ParseRequest, request: Request) -> ExtractedCertificateData:
    logger.info("API: parsing certificate text ({n} chars)", n=len(body.text))
    return request.app.state.parser.parse(body.text)


# ---------------------------------------------------------------------------
# POST /comparisons
# ---------------------------------------------------------------------------

@router.post(
    "/comparisons",
    response_model=ComparisonResult,
    summary="Compare a certificate with requirements",
    description="Score an extracted certificate against an inline template or a loaded one by name.",
)
async def create_comparison(body: ComparisonRequest, request: Request) -> ComparisonResult:
    template = _resolve_template(request, body.template, body.template_name)
    return _run_comparison(request, body.certificate, template)


# ---------------------------------------------------------------------------
# POST /analyze
# ---------------------------------------------------------------------------

@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Parse and compare",
    description="Parse certificate text and compare the result against a template.",
)
async def analyze(body: AnalyzeRequest, request: Request) -> AnalyzeResponse:
    template = _resolve_template(request, body.template, body.template_name)
    certificate = request.app.state.parser.parse(body.text)
    comparison = _run_comparison(request, certificate, template)
    return AnalyzeResponse(certificate=certificate, comparison=comparison)


# ---------------------------------------------------------------------------
# Templates & reference data
# ---------------------------------------------------------------------------

@router.get("/templates", summary="Loaded requirement templates")
async def list_templates(request: Request) -> dict:
    templates: dict[str, RequirementTemplate] = request.app.state.templates
    return {
        "templates": [
            {"name": name, "nameHe": t.name_he, "requirements": len(t.requirements)}
            for name, t in sorted(templates.items())
        ]
    }


@router.get("/templates/{name}", response_model=RequirementTemplate, summary="A single template")
async def get_template(name: str, request: Request) -> RequirementTemplate:
    return _resolve_template(request, None, name)


@router.get("/policy-types", summary="Canonical policy types")
async def list_policy_types() -> dict:
    return {
        "policyTypes": [
            {"type": t.value, "nameHe": hebrew_name(t)}
            for t in PolicyType
            if t is not PolicyType.UNKNOWN
        ]
    }


@router.get("/endorsement-codes", summary="Endorsement code reference table")
async def list_endorsement_codes() -> dict:
    return {"endorsementCodes": ENDORSEMENT_CODES}


@router.get("/service-codes", summary="Service code reference table")
async def list_service_codes() -> dict:
    return {"serviceCodes": SERVICE_CODES}


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------

@router.get("/health", summary="Health check")
async def health(request: Request) -> dict:
    """Return a lightweight health-check response."""
    return {"status": "healthy", "templates": len(request.app.state.templates)}
