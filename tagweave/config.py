"""Configuration: runtime settings and the YAML tag file schema.

``WeaverSettings`` is read from the environment (prefix ``TAGWEAVE_``).
The tag file is an alternative tag source to ``@tag`` / docstrings:

.. code-block:: yaml

    version: 1
    units:
      shop.pricing.total:
        tags:
          - {name: round, arg: 2}
          - {name: audit}
      shop.models.Cart:
        tags:
          - {name: singleton}
        members:
          add:
            - {name: log_args}
          owner:
            - {name: upper}

Tag lists are ordered; the order is the composition order.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tagweave.exceptions import TagConfigError

# ── Tag file schema ──────────────────────────────────


class TagEntry(BaseModel):
    """One declarative tag."""

    name: str = Field(min_length=1, description="Tag name, matched against the registry")
    arg: Any = Field(default=None, description="Optional tag argument")


class UnitEntry(BaseModel):
    """Tags for one function or class, plus per-member tags for classes."""

    tags: list[TagEntry] = Field(default_factory=list)
    members: dict[str, list[TagEntry]] = Field(default_factory=dict)

    def tag_mapping(self) -> dict[str, Any]:
        return {t.name: t.arg for t in self.tags}

    def member_mapping(self, member: str) -> dict[str, Any]:
        return {t.name: t.arg for t in self.members.get(member, [])}


class TagDocument(BaseModel):
    """Top-level tag file."""

    version: int = Field(default=1, ge=1, le=1)
    units: dict[str, UnitEntry] = Field(default_factory=dict)

    @field_validator("units")
    @classmethod
    def _qualified_keys(cls, units: dict[str, UnitEntry]) -> dict[str, UnitEntry]:
        for key in units:
            if "." not in key:
                msg = f"unit key {key!r} must be a qualified name (module.qualname)"
                raise ValueError(msg)
        return units

    @property
    def unit_count(self) -> int:
        return len(self.units)

    @property
    def tag_count(self) -> int:
        return sum(
            len(u.tags) + sum(len(t) for t in u.members.values()) for u in self.units.values()
        )


def load_tag_document(path: Path | str) -> TagDocument:
    """Read and validate a YAML tag file.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    TagConfigError
        If the YAML is not a mapping or fails schema validation.
    """
    path = Path(path)
    if not path.exists():
        msg = f"tag file not found: {path}"
        raise FileNotFoundError(msg)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        msg = f"{path}: invalid YAML: {exc}"
        raise TagConfigError(msg) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"{path}: expected YAML mapping at top level, got {type(data).__name__}"
        raise TagConfigError(msg)

    try:
        return TagDocument.model_validate(data)
    except Exception as exc:
        msg = f"{path}: tag file validation failed: {exc}"
        raise TagConfigError(msg) from exc


# ── Runtime settings ─────────────────────────────────


class WeaverSettings(BaseSettings):
    """Settings for ``Weaver.from_settings``."""

    model_config = SettingsConfigDict(env_prefix="TAGWEAVE_")

    tag_file: Path | None = None  # YAML tag source layered over @tag/docstrings
    decorators: list[str] = Field(default_factory=list)  # dotted paths registered by convention
