"""
Bois & Bocage - outreach tracker for the hedgerow recruitment campaign.

Keeps a session snapshot of the campaign's farms and their call history,
derives each farm's pipeline status, explains relevance scores and reports
on campaign progress.

CLI Usage:
    bocage list --department 22 --certified --min-score 60
    bocage show 42
    bocage log 42 interested --notes "Rappeler après moisson"
    bocage pipeline
    bocage export -o prospects.csv

Library Usage:
    from bocage import OutreachSession, load_config

    async with await OutreachSession.open(load_config()) as session:
        await session.refresh()
        print(len(session.prospects))
"""

__version__ = "1.0.0"

# Semantic versioning
# MAJOR.MINOR.PATCH
VERSION_INFO = {
    "major": 1,
    "minor": 0,
    "patch": 0,
    "release": "stable",  # stable, beta, alpha
}


def get_version() -> str:
    """Get full version string."""
    version = f"{VERSION_INFO['major']}.{VERSION_INFO['minor']}.{VERSION_INFO['patch']}"
    if VERSION_INFO["release"] != "stable":
        version += f"-{VERSION_INFO['release']}"
    return version


from bocage.api import OutreachSession
from bocage.config import Settings, load_config
from bocage.models import DerivedStatus, EnrichedProspect, Interaction, InteractionKind, Prospect

__all__ = [
    "OutreachSession",
    "Settings",
    "load_config",
    "Prospect",
    "EnrichedProspect",
    "Interaction",
    "InteractionKind",
    "DerivedStatus",
    "__version__",
    "get_version",
    "VERSION_INFO",
]
