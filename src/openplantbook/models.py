"""Typed values returned by the OpenPlantbook API.

Field names match the API's JSON keys so the dataclasses can be validated
directly from response bodies. A JSON null in any field other than `pid`
decodes as that field's default.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Annotated

from pydantic import BeforeValidator


def _null_as(factory: Callable[[], object]) -> BeforeValidator:
    return BeforeValidator(lambda value: factory() if value is None else value)


Text = Annotated[str, _null_as(str)]
Count = Annotated[int, _null_as(int)]
Measure = Annotated[float, _null_as(float)]


@dataclass(frozen=True)
class PlantSearchResult:
    """A single plant in search results."""

    pid: str
    display_pid: Text = ""
    alias: Text = ""
    category: Text = ""


@dataclass(frozen=True)
class SearchResponse:
    """Paginated envelope wrapping search results."""

    count: Count = 0
    next: str | None = None
    previous: str | None = None
    results: Annotated[list[PlantSearchResult], _null_as(list)] = field(default_factory=list)


@dataclass(frozen=True)
class PlantDetails:
    """Care ranges for a single plant.

    Light is in lux, temperature in °C, humidity and soil moisture in percent and
    soil conductivity in µS/cm.
    """

    pid: str
    display_pid: Text = ""
    alias: Text = ""
    max_light_lux: Count = 0
    min_light_lux: Count = 0
    max_temp: Measure = 0.0
    min_temp: Measure = 0.0
    max_env_humid: Count = 0
    min_env_humid: Count = 0
    max_soil_moist: Count = 0
    min_soil_moist: Count = 0
    max_soil_ec: Count = 0
    min_soil_ec: Count = 0
    image_url: str | None = None
    category: Text = ""


@dataclass(frozen=True)
class SearchOptions:
    """Search tuning.

    `limit` of 0 leaves the page size to the API; `user_plants` includes
    user-contributed plants.
    """

    limit: int = 0
    user_plants: bool = False


@dataclass(frozen=True)
class DetailOptions:
    """Detail tuning; `language` is an ISO 639-1 code such as "en" or "de"."""

    language: str = ""
