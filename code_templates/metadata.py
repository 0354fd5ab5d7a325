"""
Project template metadata.

Reads the code template and price override definitions of a project
(tenant) from its metadata document, e.g.

    {
        "id": "demo-project",
        "codeTemplates": {
            "default": "{code:*}",
            "ean13_instore": "2{code:5}{_}{embed:5}{ec}"
        },
        "priceOverrideCodes": [
            {
                "id": "edeka_discount",
                "template": "97{code:ean13}{embed:5}{_}",
                "lookupTemplate": "ean13_instore",
                "transmissionTemplate": "ean13_instore",
                "transmissionCode": "12345"
            }
        ]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union


# Templates every project knows, regardless of its metadata
BUILTIN_TEMPLATES: Dict[str, str] = {
    "ean13_instore": "2{code:5}{_}{embed:5}{ec}",
    "ean13_instore_chk": "2{code:5}{i}{embed:5}{ec}",
    "german_print": "4{code:2}{_:5}{embed:4}{ec}",
    "ean14_code128": "01{code:ean14}",
    "ikea_itf14": "{code:8}{_:6}",
    "default": "{code:*}",
}


class MetadataError(ValueError):
    """Raised when a metadata document is malformed."""

    pass


@dataclass(frozen=True)
class TemplateDefinition:
    """A named template string."""
    id: str
    template: str


@dataclass(frozen=True)
class PriceOverrideCode:
    """
    A price override template.

    Attributes:
        id: Template identifier
        template: The template string
        lookup_template: Id of the template to use for product lookup
        transmission_template: Id of the template used to build the code
            that is sent onward
        transmission_code: Code to transmit, or the short code to embed
            into `transmission_template`
    """
    id: str
    template: str
    lookup_template: Optional[str] = None
    transmission_template: Optional[str] = None
    transmission_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PriceOverrideCode":
        try:
            return cls(
                id=str(data["id"]),
                template=str(data["template"]),
                lookup_template=data.get("lookupTemplate"),
                transmission_template=data.get("transmissionTemplate"),
                transmission_code=data.get("transmissionCode"),
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise MetadataError(f"Invalid price override code: {data!r}") from exc


@dataclass(frozen=True)
class ProjectTemplates:
    """The template definitions of one project."""
    project_id: str
    code_templates: List[TemplateDefinition] = field(default_factory=list)
    price_override_codes: List[PriceOverrideCode] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProjectTemplates":
        """
        Build from a project metadata document.

        Raises:
            MetadataError: if required keys are missing or have the wrong type
        """
        if not isinstance(data, Mapping) or "id" not in data:
            raise MetadataError("Project metadata must be an object with an 'id'")

        templates = data.get("codeTemplates") or {}
        if not isinstance(templates, Mapping):
            raise MetadataError("'codeTemplates' must map template ids to templates")

        overrides = data.get("priceOverrideCodes") or []
        if not isinstance(overrides, list):
            raise MetadataError("'priceOverrideCodes' must be a list")

        return cls(
            project_id=str(data["id"]),
            code_templates=[
                TemplateDefinition(id=str(k), template=str(v)) for k, v in templates.items()
            ],
            price_override_codes=[PriceOverrideCode.from_dict(o) for o in overrides],
        )

    @classmethod
    def builtin(cls, project_id: str = "") -> "ProjectTemplates":
        return cls(
            project_id=project_id,
            code_templates=[
                TemplateDefinition(id=k, template=v) for k, v in BUILTIN_TEMPLATES.items()
            ],
        )


def load_projects(source: Union[str, Path, Mapping[str, Any], List[Any]]) -> List[ProjectTemplates]:
    """
    Load project template definitions.

    Args:
        source: A path to a JSON file, or an already decoded document.
            The document is either a single project, a list of projects,
            or an object with a "projects" list.

    Raises:
        MetadataError: if the document is malformed
    """
    if isinstance(source, (str, Path)):
        try:
            data = json.loads(Path(source).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise MetadataError(f"Cannot read metadata from {source}: {exc}") from exc
    else:
        data = source

    if isinstance(data, Mapping) and "projects" in data:
        data = data["projects"]
    if isinstance(data, Mapping):
        data = [data]
    if not isinstance(data, list):
        raise MetadataError("Metadata must contain a project or a list of projects")

    return [ProjectTemplates.from_dict(p) for p in data]
