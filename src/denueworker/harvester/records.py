"""
Canonical business record.

DENUE rows arrive either as positional arrays (the API's native shape) or
as keyed mappings with many spellings of the same field (exports, older
dumps). Both are resolved once, at ingestion, into ``BusinessRecord``;
the raw row is kept for the raw artifact.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

# Positional layout of a DENUE Buscar row
POSITIONAL_FIELDS = (
    "clee",
    "id",
    "name",
    "legal_name",
    "activity",
    "stratum",
    "street_type",
    "street",
    "ext_number",
    "int_number",
    "colony",
    "postal_code",
    "location",
    "phone",
    "email",
    "website",
    "kind",
    "lon",
    "lat",
)
LON_INDEX = POSITIONAL_FIELDS.index("lon")  # 17
LAT_INDEX = POSITIONAL_FIELDS.index("lat")  # 18

# Keyed synonyms, first match wins
KEYED_SYNONYMS: dict[str, tuple[str, ...]] = {
    "clee": ("CLEE", "clee"),
    "id": ("Id", "id", "ID"),
    "name": ("Nombre", "nombre", "name"),
    "legal_name": ("Razon_social", "razon_social"),
    "activity": (
        "Clase_actividad",
        "clase",
        "Clase",
        "Sector_actividad",
        "Subsector_actividad",
    ),
    "stratum": ("Estrato", "estrato"),
    "street_type": ("Tipo_vialidad", "tipo_vialidad"),
    "street": ("Calle", "calle"),
    "ext_number": ("Num_Exterior", "num_exterior"),
    "int_number": ("Num_Interior", "num_interior"),
    "colony": ("Colonia", "colonia"),
    "postal_code": ("CP", "cp", "Codigo_postal"),
    "location": ("Ubicacion", "ubicacion", "Ubic"),
    "phone": ("Telefono", "telefono"),
    "email": ("Correo_e", "correo_e"),
    "website": ("Sitio_internet", "sitio_internet"),
    "kind": ("Tipo", "tipo"),
    "lon": ("longitud", "Longitud", "lon", "lng", "Lon", "LNG"),
    "lat": ("latitud", "Latitud", "lat", "Lat", "latitude", "Latitude"),
}

CLEE_MIN_LENGTH = 11  # Shorter identifiers are not trusted as unique
NAME_KEY_CHARS = 30


@dataclass(frozen=True)
class BusinessRecord:
    """One DENUE establishment in canonical form."""

    raw: Any
    lon: float
    lat: float
    clee: str = ""
    id: str = ""
    name: str = ""
    legal_name: str = ""
    activity: str = ""
    stratum: str = ""
    street_type: str = ""
    street: str = ""
    ext_number: str = ""
    int_number: str = ""
    colony: str = ""
    postal_code: str = ""
    location: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    kind: str = ""

    @property
    def has_coordinates(self) -> bool:
        return math.isfinite(self.lon) and math.isfinite(self.lat)

    @property
    def dedup_key(self) -> str:
        return dedup_key(self)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _coord(value: Any) -> float:
    """Parse a coordinate; anything unusable becomes NaN."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _lookup(row: Mapping[str, Any], names: Sequence[str]) -> Any:
    for name in names:
        value = row.get(name)
        if value is not None:
            return value
    return None


def from_positional(row: Sequence[Any]) -> BusinessRecord:
    values = {
        name: row[i] if i < len(row) else None
        for i, name in enumerate(POSITIONAL_FIELDS)
    }
    return _build(row, values)


def from_mapping(row: Mapping[str, Any]) -> BusinessRecord:
    values = {name: _lookup(row, synonyms) for name, synonyms in KEYED_SYNONYMS.items()}
    return _build(row, values)


def _build(raw: Any, values: dict[str, Any]) -> BusinessRecord:
    lon = _coord(values.pop("lon"))
    lat = _coord(values.pop("lat"))
    return BusinessRecord(
        raw=raw,
        lon=lon,
        lat=lat,
        **{name: _text(value) for name, value in values.items()},
    )


def from_row(row: Any) -> BusinessRecord:
    """Resolve a raw DENUE row of either shape into a BusinessRecord.

    Rows of any other type are kept with NaN coordinates so the merge
    step drops them.
    """
    if isinstance(row, Mapping):
        return from_mapping(row)
    if isinstance(row, (list, tuple)):
        return from_positional(row)
    return BusinessRecord(raw=row, lon=math.nan, lat=math.nan)


def _round5(value: float) -> float:
    # Half-up, not banker's rounding
    return math.floor(value * 100_000 + 0.5) / 100_000


def dedup_key(record: BusinessRecord) -> str:
    """Identity used to collapse duplicates.

    ``clee:<CLEE>`` when the CLEE is long enough to be trusted, otherwise
    ``coord:<lon>|<lat>|<name prefix>`` with coordinates rounded to 1e-5
    degrees (about 1.1 m).
    """
    clee = record.clee.strip()
    if len(clee) >= CLEE_MIN_LENGTH:
        return f"clee:{clee}"
    name = record.name[:NAME_KEY_CHARS].lower().strip()
    return f"coord:{_round5(record.lon):.5f}|{_round5(record.lat):.5f}|{name}"


def _is_filled(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, float) and math.isnan(value):
        return False
    return True


def count_filled_fields(record: BusinessRecord) -> int:
    """Number of non-empty values in the raw row."""
    raw = record.raw
    if isinstance(raw, Mapping):
        values = raw.values()
    elif isinstance(raw, (list, tuple)):
        values = raw
    else:
        return 0
    return sum(1 for value in values if _is_filled(value))


RecordScore = Callable[[BusinessRecord], int]


def feature_properties(record: BusinessRecord) -> dict[str, str]:
    """Properties for the point artifact, keyed the way DENUE names them."""
    return {
        "nombre": record.name,
        "clase": record.activity,
        "colonia": record.colony,
    }
