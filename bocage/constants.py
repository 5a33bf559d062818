"""
Display constants, in the campaign's French wording.

Status and kind values stay English in code; the labels below are what the
field team sees in tables, exports and the pipeline report.
"""

from .models import DerivedStatus, InteractionKind

# Status labels (also used for the "status" column of the CSV export)
STATUS_LABELS = {
    DerivedStatus.WAITING: "En attente",
    DerivedStatus.CALLED: "Appelé",
    DerivedStatus.INTERESTED: "Intéressé",
    DerivedStatus.REFUSED: "Refus",
    DerivedStatus.CALLBACK: "À rappeler",
    DerivedStatus.RECRUITED: "Recruté",
}

KIND_LABELS = {kind: STATUS_LABELS[DerivedStatus.from_kind(kind)] for kind in InteractionKind}

# Terminal colours for the CLI (rich markup)
STATUS_COLOURS = {
    DerivedStatus.WAITING: "grey62",
    DerivedStatus.CALLED: "blue",
    DerivedStatus.INTERESTED: "yellow",
    DerivedStatus.REFUSED: "red",
    DerivedStatus.CALLBACK: "magenta",
    DerivedStatus.RECRUITED: "green",
}

# Pipeline report order, most advanced first
PIPELINE_ORDER = [
    DerivedStatus.RECRUITED,
    DerivedStatus.INTERESTED,
    DerivedStatus.CALLED,
    DerivedStatus.CALLBACK,
    DerivedStatus.REFUSED,
    DerivedStatus.WAITING,
]

# Messages surfaced to the user
MESSAGES = {
    "fetch_prospects": "Erreur chargement prospects : {message}",
    "fetch_interactions": "Erreur chargement actions : {message}",
    "session_expired": "Session expirée - veuillez vous reconnecter",
    "mutation_failed": "Erreur enregistrement action : {message}",
    "truncated": "{which} limit ({limit}) reached - some rows may be truncated",
    "no_match": "Aucun prospect ne correspond aux filtres",
    "no_activity": "Aucune action enregistrée. Commencez par appeler des prospects depuis le Pipeline.",
    "not_found": "Prospect non trouvé",
}

# CSV export header
EXPORT_HEADER = [
    "external_reference",
    "name",
    "city",
    "department",
    "zone",
    "area_ha",
    "score",
    "status",
    "phone",
]
