"""
tests/conftest.py
Shared fixtures for the schemagen test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import logging
import pathlib
from typing import Any, Dict, Iterator

import pytest
import yaml

from schemagen.models import SchemaDocument


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_schemagen_logger() -> Iterator[None]:
    """The CLI reconfigures the ``schemagen`` logger; undo it after each test."""
    yield
    package_logger = logging.getLogger("schemagen")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


# ---------------------------------------------------------------------------
# Raw schema data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_schema_dict() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session and return as dict."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference schema not found at {SCHEMA_EXAMPLE_PATH}. "
        "Make sure schema_example.yaml is in the project root."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def schema_dict(raw_schema_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_schema_dict)


@pytest.fixture()
def schema_yaml_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the schema dict to a temporary YAML file and return its path."""
    path = tmp_path / "schema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(schema_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def example_schema(schema_dict: Dict[str, Any]) -> SchemaDocument:
    """The reference schema as a validated document."""
    return SchemaDocument.model_validate(
        {"models": schema_dict["models"], "enums": schema_dict["enums"]}
    )


# ---------------------------------------------------------------------------
# Minimal / edge-case schema fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_schema_dict() -> Dict[str, Any]:
    """Smallest useful schema: one model with an auto-increment id, no enums."""
    return {
        "models": [
            {
                "name": "Item",
                "fields": [
                    {"name": "id", "kind": "Int", "isId": True, "hasDefaultValue": True},
                    {"name": "title", "kind": "String"},
                ],
            }
        ],
    }


@pytest.fixture()
def many_to_many_schema_dict() -> Dict[str, Any]:
    """Post <-> Category through an implicit join table; Post ids are UUIDs."""
    return {
        "models": [
            {
                "name": "Post",
                "fields": [
                    {"name": "id", "kind": "String", "isId": True, "nativeType": "Uuid"},
                    {
                        "name": "categories",
                        "kind": "Relation",
                        "isList": True,
                        "relationName": "CategoryToPost",
                        "relationTarget": "Category",
                    },
                ],
            },
            {
                "name": "Category",
                "fields": [
                    {"name": "id", "kind": "Int", "isId": True, "hasDefaultValue": True},
                    {
                        "name": "posts",
                        "kind": "Relation",
                        "isList": True,
                        "relationName": "CategoryToPost",
                        "relationTarget": "Post",
                    },
                ],
            },
        ],
    }


@pytest.fixture()
def dmmf_dict() -> Dict[str, Any]:
    """A trimmed Prisma DMMF dump with a generator block."""
    return {
        "generator": {
            "name": "effect",
            "provider": {"value": "schemagen", "fromEnvVar": None},
            "output": {"value": "./generated", "fromEnvVar": None},
            "config": {"runtimeModule": "@acme/kysely-runtime"},
            "previewFeatures": [],
        },
        "dmmf": {
            "datamodel": {
                "models": [
                    {
                        "name": "User",
                        "dbName": "users",
                        "primaryKey": None,
                        "fields": [
                            {
                                "name": "id",
                                "kind": "scalar",
                                "type": "String",
                                "isList": False,
                                "isRequired": True,
                                "isUnique": False,
                                "isId": True,
                                "isReadOnly": False,
                                "hasDefaultValue": True,
                                "isUpdatedAt": False,
                                "nativeType": ["Uuid", []],
                            },
                            {
                                "name": "role",
                                "kind": "enum",
                                "type": "Role",
                                "isList": False,
                                "isRequired": True,
                                "isId": False,
                                "hasDefaultValue": False,
                            },
                            {
                                "name": "posts",
                                "kind": "object",
                                "type": "Post",
                                "isList": True,
                                "isRequired": True,
                                "isId": False,
                                "hasDefaultValue": False,
                                "relationName": "PostToUser",
                                "relationFromFields": [],
                                "relationToFields": [],
                            },
                        ],
                    },
                    {
                        "name": "Post",
                        "dbName": None,
                        "fields": [
                            {
                                "name": "id",
                                "kind": "scalar",
                                "type": "Int",
                                "isId": True,
                                "hasDefaultValue": True,
                            },
                            {
                                "name": "authorId",
                                "kind": "scalar",
                                "type": "String",
                                "dbName": "author_id",
                                "nativeType": ["Uuid", []],
                            },
                            {
                                "name": "author",
                                "kind": "object",
                                "type": "User",
                                "relationName": "PostToUser",
                                "relationFromFields": ["authorId"],
                                "relationToFields": ["id"],
                            },
                        ],
                    },
                ],
                "enums": [
                    {
                        "name": "Role",
                        "values": [
                            {"name": "ADMIN", "dbName": None},
                            {"name": "MEMBER", "dbName": "member"},
                        ],
                        "dbName": None,
                    }
                ],
            }
        },
    }


@pytest.fixture()
def domain_schema_dict() -> Dict[str, Any]:
    """Two domains declared through schema locations, sharing one enum."""
    return {
        "models": [
            {
                "name": "User",
                "schemaLocation": "prisma/schemas/identity.prisma",
                "fields": [
                    {"name": "id", "kind": "String", "isId": True, "nativeType": "Uuid"},
                    {"name": "role", "kind": "Enum", "enumName": "Role"},
                ],
            },
            {
                "name": "Invoice",
                "schemaLocation": "prisma/schemas/billing.prisma",
                "fields": [
                    {"name": "id", "kind": "Int", "isId": True, "hasDefaultValue": True},
                    {"name": "status", "kind": "Enum", "enumName": "InvoiceStatus"},
                    {"name": "userId", "kind": "String", "nativeType": "Uuid"},
                    {
                        "name": "user",
                        "kind": "Relation",
                        "relationName": "InvoiceToUser",
                        "relationTarget": "User",
                        "relationFromFields": ["userId"],
                        "relationToFields": ["id"],
                    },
                ],
            },
        ],
        "enums": [
            {"name": "Role", "values": ["ADMIN", "MEMBER"]},
            {"name": "InvoiceStatus", "values": ["OPEN", "PAID"]},
        ],
    }
