"""Guest manifest (``manifest.json``) loading and validation.

A guest declares the host modules it intends to call in ``permissions``;
entries are either a module name (``"toast"``) or a single method
(``"toast:show"``).
"""

from __future__ import annotations

import json
from pathlib import Path
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ManifestError
from .permissions import PermissionContext, PermissionMode, ViolationSink

NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]{0,99}$")
SEMVER_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


class GuestManifest(BaseModel):
    """Declared identity and permissions of one guest bundle."""

    model_config = {"extra": "ignore"}

    name: str
    version: str
    description: str
    permissions: list[str] = Field(default_factory=list)
    entry: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not NAME_PATTERN.match(value):
            raise ValueError(
                f"name invalid (expected {NAME_PATTERN.pattern}): {value!r}"
            )
        return value

    @field_validator("version", mode="before")
    @classmethod
    def _validate_version(cls, value: Any) -> str:
        if not isinstance(value, str) or not SEMVER_PATTERN.match(value):
            raise ValueError(f"version invalid (expected x.y.z): {value!r}")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _validate_description(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("description must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("description must be non-empty.")
        return normalized

    @field_validator("permissions", mode="before")
    @classmethod
    def _validate_permissions(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("permissions must be a list of strings.")
        normalized: list[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ValueError("Each permission must be a string.")
            candidate = item.strip()
            if candidate and candidate not in normalized:
                normalized.append(candidate)
        return normalized

    @field_validator("entry", mode="before")
    @classmethod
    def _validate_entry(cls, value: Any) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("entry must be a string.")
        if not value.endswith(".js"):
            raise ValueError("entry must be a .js file path.")
        return value

    def permission_context(
        self,
        mode: PermissionMode | str = PermissionMode.DENY,
        on_contract_violation: ViolationSink | None = None,
    ) -> PermissionContext:
        """Build the dispatch-time permission snapshot for this guest."""
        return PermissionContext.from_options(
            permissions=self.permissions,
            permission_mode=mode,
            on_contract_violation=on_contract_violation,
        )


def parse_manifest(data: Any) -> GuestManifest:
    try:
        return GuestManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestError(f"Invalid manifest: {exc}") from exc


def load_manifest(path: Path) -> GuestManifest:
    """Read and validate a manifest file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestError(f"Unable to read manifest at {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ManifestError(f"Manifest at {path} is not UTF-8 text: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Manifest at {path} is not valid JSON: {exc}") from exc
    return parse_manifest(data)
