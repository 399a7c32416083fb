"""Requirement templates stored on disk as YAML or CSV.

YAML files hold a whole template::

    name: construction_contractor
    name_he: קבלן בניה
    requirements:
      - policy_type: צד שלישי
        minimum_limit_per_period: 4000000
        required_endorsements: ["302", "318"]

CSV files hold one requirement per row, with the template named after the
file. ``required_endorsements`` is a ``;``-separated list of codes and empty
cells leave a field unset.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd
import yaml
from loguru import logger
from omegaconf import OmegaConf
from pydantic import ValidationError

from cert_compliance.core.comparison import InvalidInputError
from cert_compliance.core.policy_types import normalize_policy_type
from cert_compliance.schemas.certificate import PolicyType
from cert_compliance.schemas.requirement import RequirementTemplate

SUPPORTED_SUFFIXES = (".yaml", ".yml", ".csv")

_INT_COLUMNS = frozenset(
    {
        "minimum_limit_per_period",
        "minimum_limit_per_occurrence",
        "maximum_deductible",
        "minimum_validity_days",
    }
)
_POLICY_TYPE_KEYS = ("policy_type", "policyType")


# ---------------------------------------------------------------------------
# Row / document normalization
# ---------------------------------------------------------------------------

def _normalize_requirement(raw: dict[str, Any], source: str) -> dict[str, Any]:
    requirement = dict(raw)
    for key in _POLICY_TYPE_KEYS:
        if key not in requirement:
            continue
        text = requirement[key]
        policy_type = normalize_policy_type(str(text) if text is not None else None)
        if policy_type is PolicyType.UNKNOWN:
            raise InvalidInputError(f"{source}: unrecognised policy type {text!r}")
        requirement[key] = policy_type.value
        # A Hebrew heading doubles as the display name.
        if "policy_type_he" not in requirement and "policyTypeHe" not in requirement:
            if str(text) != policy_type.value:
                requirement["policy_type_he"] = str(text)
    return requirement


def _csv_row_to_requirement(row: dict[str, str]) -> dict[str, Any]:
    requirement: dict[str, Any] = {}
    for column, value in row.items():
        value = value.strip()
        if not value:
            continue
        if column == "required_endorsements":
            requirement[column] = [code.strip() for code in value.split(";") if code.strip()]
        elif column in _INT_COLUMNS:
            requirement[column] = value.replace(",", "")
        else:
            requirement[column] = value
    return requirement


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        document = OmegaConf.to_container(OmegaConf.load(path), resolve=True)
    except yaml.YAMLError as exc:
        raise InvalidInputError(f"{path.name}: malformed YAML") from exc
    if not isinstance(document, dict):
        raise InvalidInputError(f"{path.name}: expected a mapping at the top level")
    return document


def _read_csv(path: Path) -> dict[str, Any]:
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise InvalidInputError(f"{path.name}: malformed CSV") from exc
    df.columns = [str(c).strip() for c in df.columns]
    logger.debug("Loaded {n} requirement rows from {path}", n=len(df), path=str(path))
    return {"requirements": [_csv_row_to_requirement(row) for row in df.to_dict(orient="records")]}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def load_template(path: str | Path) -> RequirementTemplate:
    """Load a single :class:`RequirementTemplate` from a YAML or CSV file.

    Parameters
    ----------
    path:
        File to read. The suffix selects the format.

    Returns
    -------
    RequirementTemplate
        The validated template; its name defaults to the file stem.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    InvalidInputError
        If the file format is unsupported or its content fails validation.
    """
    template_file = Path(path)
    if not template_file.exists():
        raise FileNotFoundError(f"Template file not found: {path}")

    suffix = template_file.suffix.lower()
    if suffix in (".yaml", ".yml"):
        document = _read_yaml(template_file)
    elif suffix == ".csv":
        document = _read_csv(template_file)
    else:
        raise InvalidInputError(f"Unsupported template format: {template_file.name}")

    document.setdefault("name", template_file.stem)
    requirements = document.get("requirements")
    if not isinstance(requirements, list):
        raise InvalidInputError(f"{template_file.name}: 'requirements' must be a list")
    document["requirements"] = [
        _normalize_requirement(item, template_file.name) if isinstance(item, dict) else item
        for item in requirements
    ]

    try:
        template = RequirementTemplate.model_validate(document)
    except ValidationError as exc:
        raise InvalidInputError(f"{template_file.name}: {exc}") from exc

    logger.info(
        "Loaded template '{name}' ({n} requirements) from {path}",
        name=template.name,
        n=len(template.requirements),
        path=str(template_file),
    )
    return template


def load_templates(directory: str | Path) -> dict[str, RequirementTemplate]:
    """Load every supported template file in *directory*, keyed by template name.

    Files that fail to load are logged and skipped. A missing directory
    yields an empty mapping.
    """
    templates_dir = Path(directory)
    if not templates_dir.is_dir():
        logger.warning("Templates directory not found: {path}", path=str(templates_dir))
        return {}

    templates: dict[str, RequirementTemplate] = {}
    for template_file in sorted(templates_dir.iterdir()):
        if template_file.suffix.lower() not in SUPPORTED_SUFFIXES:
            continue
        try:
            template = load_template(template_file)
        except (InvalidInputError, OSError) as exc:
            logger.error("Skipping template {path}: {err}", path=str(template_file), err=str(exc))
            continue
        if template.name in templates:
            logger.warning("Duplicate template name '{name}'; keeping the first", name=template.name)
            continue
        templates[template.name] = template

    logger.info("Loaded {n} templates from {path}", n=len(templates), path=str(templates_dir))
    return templates
