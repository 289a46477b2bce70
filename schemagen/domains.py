# File: schemagen/domains.py
"""
schemagen - Domain Detection
============================
Groups models into domains for multi-file schemas, so each domain gets its
own artifact set under ``<output>/<domain>/src/generated/``.

Strategies, first one that yields domains wins:

1. ``schema_location`` of each model (file stem, lower-cased).
2. ``*.prisma`` files in a ``schemas/`` directory next to the main schema
   file; a model joins the first domain (sorted) that prefixes its
   lower-cased name, else ``shared`` (or the first domain when there is
   no ``shared`` file).
3. A single ``shared`` domain with every model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Dict, List, Optional

from schemagen.models import ModelDescriptor, SchemaDocument

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.domains")

SHARED_DOMAIN: str = "shared"
SCHEMA_SUFFIX: str = ".prisma"
SCHEMAS_DIRNAME: str = "schemas"
DOMAIN_OUTPUT_SUBDIR: str = "src/generated"


@dataclass(slots=True)
class DomainInfo:
    """A detected domain and the models that belong to it."""

    name: str
    models: List[ModelDescriptor] = field(default_factory=list)
    source_file: Optional[str] = None

    @property
    def output_prefix(self) -> str:
        """Artifact path prefix relative to the output root."""
        return f"{self.name}/{DOMAIN_OUTPUT_SUBDIR}"


def domain_from_path(file_path: str) -> str:
    """
    Domain name of a schema file.

    >>> domain_from_path("prisma/schemas/User.prisma")
    'user'
    """
    name: str = PurePath(file_path).name
    if name.endswith(SCHEMA_SUFFIX):
        name = name[: -len(SCHEMA_SUFFIX)]
    return name.lower()


def detect_domains_from_locations(schema: SchemaDocument) -> List[DomainInfo]:
    domains: Dict[str, DomainInfo] = {}
    for model in schema.models:
        if not model.schema_location:
            continue
        name: str = domain_from_path(model.schema_location)
        domain: DomainInfo = domains.setdefault(
            name, DomainInfo(name=name, source_file=model.schema_location)
        )
        domain.models.append(model)
    return sorted(domains.values(), key=lambda d: d.name)


def _infer_domain(model: ModelDescriptor, domain_names: List[str]) -> str:
    lowered: str = model.name.lower()
    for name in domain_names:
        if lowered.startswith(name):
            return name
    if SHARED_DOMAIN in domain_names:
        return SHARED_DOMAIN
    return domain_names[0]


def detect_domains_from_files(
    schema: SchemaDocument, schema_path: str
) -> List[DomainInfo]:
    schemas_dir: Path = Path(schema_path).parent / SCHEMAS_DIRNAME
    if not schemas_dir.is_dir():
        return []

    files: List[Path] = sorted(
        p for p in schemas_dir.iterdir() if p.is_file() and p.suffix == SCHEMA_SUFFIX
    )
    if not files:
        return []

    domains: Dict[str, DomainInfo] = {}
    for path in files:
        name: str = path.stem.lower()
        domains.setdefault(name, DomainInfo(name=name, source_file=str(path)))

    names: List[str] = sorted(domains)
    for model in schema.models:
        domains[_infer_domain(model, names)].models.append(model)

    return [domains[n] for n in names]


def detect_domains(
    schema: SchemaDocument, schema_path: Optional[str] = None
) -> List[DomainInfo]:
    """Detect the domains of *schema*, sorted by name."""
    domains: List[DomainInfo] = detect_domains_from_locations(schema)
    if domains:
        logger.info("Detected %d domain(s) from schema locations.", len(domains))
        return domains

    if schema_path:
        domains = detect_domains_from_files(schema, schema_path)
        if domains:
            logger.info(
                "Detected %d domain(s) from %s files.", len(domains), SCHEMAS_DIRNAME
            )
            return domains

    logger.info("No domains detected; using single '%s' domain.", SHARED_DOMAIN)
    return [DomainInfo(name=SHARED_DOMAIN, models=list(schema.models))]


__all__: List[str] = [
    "SHARED_DOMAIN",
    "DomainInfo",
    "domain_from_path",
    "detect_domains_from_locations",
    "detect_domains_from_files",
    "detect_domains",
]
