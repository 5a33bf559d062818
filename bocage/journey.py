"""
Sales journey: the five steps from first contact to recruitment.

Status-based steps follow the prospect's derived status; document steps are
complete once an interaction note carries the document's tag.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .models import DerivedStatus, EnrichedProspect, Interaction, InteractionKind

logger = logging.getLogger(__name__)

BROCHURE = "brochure"
ENGAGEMENT = "engagement"

DOCUMENT_TAGS = {
    BROCHURE: "[DOC] Plaquette de sensibilisation",
    ENGAGEMENT: "[DOC] Dossier d'engagement",
}

# Kind recorded when a document goes out
DOCUMENT_KINDS = {
    BROCHURE: InteractionKind.CALLED,
    ENGAGEMENT: InteractionKind.INTERESTED,
}


@dataclass(frozen=True)
class JourneyStep:
    key: str
    label: str
    statuses: frozenset = frozenset()
    document: Optional[str] = None


STEPS = [
    JourneyStep(
        key="contact",
        label="Prise de contact",
        statuses=frozenset({
            DerivedStatus.CALLED,
            DerivedStatus.INTERESTED,
            DerivedStatus.CALLBACK,
            DerivedStatus.RECRUITED,
        }),
    ),
    JourneyStep(key="awareness", label="Plaquette envoyée", document=BROCHURE),
    JourneyStep(
        key="interest",
        label="Intérêt confirmé",
        statuses=frozenset({DerivedStatus.INTERESTED, DerivedStatus.RECRUITED}),
    ),
    JourneyStep(key="engagement", label="Dossier envoyé", document=ENGAGEMENT),
    JourneyStep(
        key="recruited",
        label="Recrutement",
        statuses=frozenset({DerivedStatus.RECRUITED}),
    ),
]


@dataclass(frozen=True)
class JourneyProgress:
    """Per-step completion for one prospect."""

    completed: tuple

    @property
    def active_step(self) -> int:
        """Index of the last completed step, -1 when none is."""
        for index in range(len(self.completed) - 1, -1, -1):
            if self.completed[index]:
                return index
        return -1

    @property
    def next_step(self) -> Optional[JourneyStep]:
        index = self.active_step + 1
        return STEPS[index] if index < len(STEPS) else None

    def steps(self) -> list[tuple[JourneyStep, bool]]:
        return list(zip(STEPS, self.completed))


def document_sent(history: Iterable[Interaction], document: str) -> bool:
    tag = DOCUMENT_TAGS[document]
    return any(i.notes and tag in i.notes for i in history)


def journey_progress(prospect: EnrichedProspect, history: Iterable[Interaction]) -> JourneyProgress:
    """Work out which journey steps a prospect has completed."""
    history = [i for i in history if i.prospect_id == prospect.id]
    completed = []
    for step in STEPS:
        if step.document:
            completed.append(document_sent(history, step.document))
        else:
            completed.append(prospect.status in step.statuses)
    return JourneyProgress(completed=tuple(completed))


def document_note(document: str) -> str:
    """Tagged note recorded when a document is emailed."""
    if document not in DOCUMENT_TAGS:
        raise ValueError(f"Unknown document: {document}")
    if document == BROCHURE:
        return f"{DOCUMENT_TAGS[document]} envoyée par email"
    return f"{DOCUMENT_TAGS[document]} envoyé par email"


async def send_document(mutations, prospect: EnrichedProspect, history: Iterable[Interaction], document: str):
    """
    Record that a document was emailed to a prospect.

    Returns:
        (sent, error) - sent is False when the document had already gone out
        or recording failed; error is the mutation error, if any.
    """
    note = document_note(document)
    if document_sent(history, document):
        logger.info("%s already sent to prospect %s", document, prospect.id)
        return False, None

    error = await mutations.append_interaction(prospect.id, DOCUMENT_KINDS[document], note)
    return error is None, error
