"""Configuration settings for the Bois & Bocage outreach tracker."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

RECONCILE_STRATEGIES = ("patch", "revalidate")


@dataclass
class ScoringConfig:
    """Weights and thresholds for the relevance score breakdown."""

    # Criterion weights (max 85 total, the stored score has extra signals)
    area_present_weight: int = 30
    large_area_weight: int = 20
    certified_weight: int = 15
    tonnage_weight: int = 10
    loyalty_weight: int = 10

    # Thresholds
    large_area_ha: float = 50
    tonnage_min: float = 100
    loyalty_min_years: int = 3

    # Score badge tiers
    high_score: int = 70
    medium_score: int = 50


@dataclass
class Settings:
    """Unified settings with YAML override support."""

    # Backend (from environment)
    supabase_url: str = field(default_factory=lambda: os.environ.get("SUPABASE_URL", ""))
    supabase_anon_key: str = field(default_factory=lambda: os.environ.get("SUPABASE_ANON_KEY", ""))

    # Sign-in credentials for the CLI (optional)
    email: str = field(default_factory=lambda: os.environ.get("BOCAGE_EMAIL", ""))
    password: str = field(default_factory=lambda: os.environ.get("BOCAGE_PASSWORD", ""))

    # Row caps for the snapshot reads
    prospect_limit: int = 500
    interaction_limit: int = 1000

    # Campaign
    recruitment_goal: int = 40
    recent_activity_limit: int = 20

    # Network
    request_timeout: int = 30  # seconds

    # How the snapshot is reconciled after appending an interaction
    reconcile: str = "patch"

    # Export
    export_filename: str = "prospects_bois_bocage.csv"

    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    @property
    def backend_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


def load_config(path: Optional[str] = None) -> Settings:
    """
    Load settings from YAML file with environment overrides.

    Priority: environment > config file > defaults

    Args:
        path: Path to YAML config file (optional)

    Returns:
        Settings instance with merged configuration
    """
    settings = Settings()

    if path:
        config_path = Path(path)
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}

            scoring = data.pop("scoring", None) or {}
            for key, value in scoring.items():
                if hasattr(settings.scoring, key):
                    setattr(settings.scoring, key, value)

            # Apply config values
            for key, value in data.items():
                if hasattr(settings, key):
                    setattr(settings, key, value)

    # Environment overrides (always win)
    if os.environ.get("SUPABASE_URL"):
        settings.supabase_url = os.environ["SUPABASE_URL"]
    if os.environ.get("SUPABASE_ANON_KEY"):
        settings.supabase_anon_key = os.environ["SUPABASE_ANON_KEY"]
    if os.environ.get("BOCAGE_EMAIL"):
        settings.email = os.environ["BOCAGE_EMAIL"]
    if os.environ.get("BOCAGE_PASSWORD"):
        settings.password = os.environ["BOCAGE_PASSWORD"]

    if settings.reconcile not in RECONCILE_STRATEGIES:
        raise ValueError(
            f"Unknown reconcile strategy {settings.reconcile!r} "
            f"(expected one of {', '.join(RECONCILE_STRATEGIES)})"
        )

    return settings


# Backend column lists, in the backend's own naming
PROSPECT_COLUMNS = [
    "id",
    "numero_tiers",
    "civilite",
    "nom",
    "rue",
    "code_postal",
    "ville",
    "departement",
    "zone_geographique",
    "telephone_domicile",
    "telephone_elevage",
    "adresse_email",
    "sau_estimee_ha",
    "source_sau",
    "sau_contrats_ha",
    "sau_tonnages_ha",
    "tonnage_total",
    "certifications",
    "latitude",
    "longitude",
    "annee_fidelite",
    "score_pertinence",
    "tc_referent",
]

INTERACTION_COLUMNS = ["id", "prospect_id", "type", "notes", "created_at", "created_by"]

PROSPECTS_TABLE = "prospects"
INTERACTIONS_TABLE = "actions"
