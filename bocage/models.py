"""Data models for the outreach tracker."""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

# Certification markers the backend uses for "none"
NOT_CERTIFIED = {"", "0", "0.0"}


def is_certified(value: Optional[str]) -> bool:
    """Normalise the certification marker: None, "", "0" and "0.0" mean none."""
    if value is None:
        return False
    return str(value).strip() not in NOT_CERTIFIED


def parse_timestamp(value) -> datetime:
    """Parse a backend timestamp into an aware datetime (UTC when unqualified)."""
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _number(value) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _integer(value) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(float(value))


class InteractionKind(Enum):
    CALLED = "called"
    INTERESTED = "interested"
    REFUSED = "refused"
    CALLBACK = "callback"
    RECRUITED = "recruited"

    @classmethod
    def parse(cls, value: str) -> "InteractionKind":
        """Accept both the English values and the backend's stored values."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text in BACKEND_KINDS:
            return BACKEND_KINDS[text]
        return cls(text)

    @property
    def backend_value(self) -> str:
        return KIND_TO_BACKEND[self]


BACKEND_KINDS = {
    "appele": InteractionKind.CALLED,
    "interesse": InteractionKind.INTERESTED,
    "refus": InteractionKind.REFUSED,
    "rappeler": InteractionKind.CALLBACK,
    "recrute": InteractionKind.RECRUITED,
}
KIND_TO_BACKEND = {kind: value for value, kind in BACKEND_KINDS.items()}


class DerivedStatus(Enum):
    WAITING = "waiting"
    CALLED = "called"
    INTERESTED = "interested"
    CALLBACK = "callback"
    REFUSED = "refused"
    RECRUITED = "recruited"

    @classmethod
    def from_kind(cls, kind: InteractionKind) -> "DerivedStatus":
        return cls(kind.value)


@dataclass(frozen=True)
class Prospect:
    """A farm on the campaign list, as stored in the backend."""

    id: int
    external_reference: str
    name: str
    relevance_score: int = 0

    civility: Optional[str] = None
    street: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    department: Optional[str] = None
    zone: Optional[str] = None

    # Contact channels
    home_phone: Optional[str] = None
    farm_phone: Optional[str] = None
    email: Optional[str] = None

    # Farm attributes
    estimated_area: Optional[float] = None  # hectares
    area_source: Optional[str] = None
    contract_area: Optional[float] = None
    tonnage_area: Optional[float] = None
    tonnage: Optional[float] = None
    loyalty_years: Optional[int] = None
    certifications: Optional[str] = None

    latitude: Optional[float] = None
    longitude: Optional[float] = None

    account_manager: Optional[str] = None

    @property
    def certified(self) -> bool:
        return is_certified(self.certifications)

    @property
    def phone(self) -> Optional[str]:
        """Best phone number: the farm line first, then home."""
        return self.farm_phone or self.home_phone or None

    @classmethod
    def from_row(cls, row: dict) -> "Prospect":
        """Build a prospect from a backend row."""
        return cls(
            id=int(row["id"]),
            external_reference=str(row.get("numero_tiers") or ""),
            name=row.get("nom") or "",
            relevance_score=_integer(row.get("score_pertinence")) or 0,
            civility=row.get("civilite"),
            street=row.get("rue"),
            postal_code=row.get("code_postal"),
            city=row.get("ville"),
            department=row.get("departement"),
            zone=row.get("zone_geographique"),
            home_phone=row.get("telephone_domicile"),
            farm_phone=row.get("telephone_elevage"),
            email=row.get("adresse_email"),
            estimated_area=_number(row.get("sau_estimee_ha")),
            area_source=row.get("source_sau"),
            contract_area=_number(row.get("sau_contrats_ha")),
            tonnage_area=_number(row.get("sau_tonnages_ha")),
            tonnage=_number(row.get("tonnage_total")),
            loyalty_years=_integer(row.get("annee_fidelite")),
            certifications=row.get("certifications"),
            latitude=_number(row.get("latitude")),
            longitude=_number(row.get("longitude")),
            account_manager=row.get("tc_referent"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = {f.name: getattr(self, f.name) for f in fields(Prospect)}
        data["certified"] = self.certified
        return data


@dataclass(frozen=True)
class Interaction:
    """One outreach contact with a prospect. Never edited once stored."""

    id: int
    prospect_id: int
    kind: InteractionKind
    created_at: datetime
    notes: Optional[str] = None
    created_by: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Interaction":
        return cls(
            id=int(row["id"]),
            prospect_id=int(row["prospect_id"]),
            kind=InteractionKind.parse(row["type"]),
            created_at=parse_timestamp(row["created_at"]),
            notes=row.get("notes"),
            created_by=row.get("created_by"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "prospect_id": self.prospect_id,
            "kind": self.kind.value,
            "notes": self.notes,
            "created_at": self.created_at.isoformat(),
            "created_by": self.created_by,
        }


@dataclass(frozen=True)
class EnrichedProspect(Prospect):
    """A prospect with its derived pipeline status."""

    status: DerivedStatus = DerivedStatus.WAITING
    last_interaction: Optional[Interaction] = None

    @classmethod
    def from_prospect(
        cls,
        prospect: Prospect,
        status: DerivedStatus = DerivedStatus.WAITING,
        last_interaction: Optional[Interaction] = None,
    ) -> "EnrichedProspect":
        values = {f.name: getattr(prospect, f.name) for f in fields(Prospect)}
        return cls(**values, status=status, last_interaction=last_interaction)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["status"] = self.status.value
        data["last_interaction"] = self.last_interaction.to_dict() if self.last_interaction else None
        return data


@dataclass(frozen=True)
class ScoreCriterion:
    """One weighted criterion of the relevance score breakdown."""

    label: str
    points_max: int
    met: bool
    points_awarded: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "points_awarded", self.points_max if self.met else 0)
