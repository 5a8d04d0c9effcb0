"""SmartList catalog models.

Rules:
- at most one option per entry has ``is_default``
- option ``order`` values are a dense permutation of ``1..N``
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class SmartListOption(BaseModel):
    """One selectable value of a SmartList."""

    model_config = ConfigDict(
        extra="ignore", frozen=True, populate_by_name=True, coerce_numbers_to_str=True
    )

    value: str
    order: int = Field(ge=1)
    is_default: bool = Field(
        default=False, validation_alias=AliasChoices("is_default", "isDefault")
    )


class SmartListCatalogEntry(BaseModel):
    """Catalog entry keyed by ``catalog_id`` (the Epic id in catalog files)."""

    model_config = ConfigDict(
        extra="ignore", frozen=True, populate_by_name=True, coerce_numbers_to_str=True
    )

    catalog_id: str = Field(validation_alias=AliasChoices("catalog_id", "catalogId", "epicId"))
    display_name: str = Field(
        validation_alias=AliasChoices("display_name", "displayName")
    )
    group: str | None = None
    identifier: str | None = None
    options: list[SmartListOption] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_options(self) -> SmartListCatalogEntry:
        defaults = [option.value for option in self.options if option.is_default]
        if len(defaults) > 1:
            raise ValueError(
                f"SmartList {self.catalog_id} has more than one default option: {defaults}"
            )

        orders = sorted(option.order for option in self.options)
        if orders != list(range(1, len(self.options) + 1)):
            raise ValueError(
                f"SmartList {self.catalog_id} option orders must be 1..{len(self.options)}, "
                f"got {orders}"
            )
        return self

    def ordered_options(self) -> list[SmartListOption]:
        return sorted(self.options, key=lambda option: option.order)


@dataclass(frozen=True)
class CatalogMiss:
    """Recoverable lookup result for a catalog id absent from the catalog."""

    catalog_id: str
    display_name: str = ""

    @property
    def label(self) -> str:
        return f"List:{self.catalog_id}"


Catalog = Mapping[str, SmartListCatalogEntry]
