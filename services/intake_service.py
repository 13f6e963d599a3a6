# services/intake_service.py
"""
Intake storage and submission workflow.

The persistent store lives outside this package; routes talk to it
through the IntakeStore interface. InMemoryIntakeStore backs development
and tests.
"""

import copy
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol

from services.forms import DocumentAssembler, IntakeSnapshot, missing_signatures
from services.forms.exceptions import UnknownFormTypeError
from services.forms.registry import get_form_config

logger = logging.getLogger(__name__)

STATUS_PENDING = 'PENDING'
STATUS_COMPLETED = 'COMPLETED'

# Submission field -> store column
DATA_FIELDS = {
    'defendant': 'defendantData',
    'indemnitor': 'indemnitorData',
    'references': 'referencesData',
    'bond': 'bondData',
}


class IntakeError(Exception):
    """Base exception for intake workflow errors."""

    def __init__(self, message: str, intake_id: Optional[str] = None):
        self.intake_id = intake_id
        super().__init__(message)


class IntakeNotFoundError(IntakeError):
    """No intake with the given id."""
    pass


class IntakeAlreadySubmittedError(IntakeError):
    """The intake was already completed."""
    pass


class IntakeStore(Protocol):
    def get_intake(self, intake_id: str) -> Optional[Dict[str, Any]]:
        ...

    def list_templates(self, company_id: str) -> List[Mapping[str, Any]]:
        ...

    def save_intake(self, intake_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        ...


class InMemoryIntakeStore:
    """
    Dict-backed store.

    Intakes are plain records with the store column names
    (defendantData, indemnitorData, referencesData, bondData, signatures,
    generatedPdfs, status) plus a nested company record. Reads return
    copies so callers cannot change stored state in place.
    """

    def __init__(
        self,
        intakes: Optional[Mapping[str, Mapping[str, Any]]] = None,
        templates: Optional[Mapping[str, List[Mapping[str, Any]]]] = None
    ):
        self._lock = threading.Lock()
        self._intakes = {str(k): dict(v) for k, v in (intakes or {}).items()}
        self._templates = {str(k): list(v) for k, v in (templates or {}).items()}

    def get_intake(self, intake_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            intake = self._intakes.get(str(intake_id))
            return copy.deepcopy(intake) if intake is not None else None

    def add_intake(self, intake_id: str, intake: Mapping[str, Any]) -> None:
        with self._lock:
            record = dict(intake)
            record.setdefault('id', str(intake_id))
            record.setdefault('status', STATUS_PENDING)
            self._intakes[str(intake_id)] = record

    def save_intake(self, intake_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        with self._lock:
            if str(intake_id) not in self._intakes:
                raise IntakeNotFoundError(f"Intake not found: {intake_id}", intake_id=intake_id)
            self._intakes[str(intake_id)].update(copy.deepcopy(dict(changes)))
            return copy.deepcopy(self._intakes[str(intake_id)])

    def list_templates(self, company_id: str) -> List[Mapping[str, Any]]:
        with self._lock:
            return [dict(row) for row in self._templates.get(str(company_id), [])]

    def set_templates(self, company_id: str, rows: List[Mapping[str, Any]]) -> None:
        """Replace a company's template rows. Callers must invalidate the template cache."""
        with self._lock:
            self._templates[str(company_id)] = [dict(row) for row in rows]


def build_snapshot(
    intake: Mapping[str, Any],
    company_defaults: Optional[Mapping[str, Any]] = None
) -> IntakeSnapshot:
    """Snapshot of a store record, company name and color defaulted."""
    return IntakeSnapshot.from_dict(intake, company_defaults=company_defaults)


def complete_submission(
    intake: Mapping[str, Any],
    submission: Mapping[str, Any],
    assembler: DocumentAssembler,
    now: Optional[datetime] = None,
    generate_pdfs: bool = True,
    company_defaults: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build the changes that complete an intake.

    Submitted sections replace the stored ones; sections left out of the
    submission keep their draft values. PDF generation failures do not
    block completion: the failure sentinel is stored instead.

    Args:
        intake: Stored intake record
        submission: {'defendant': {...}, 'indemnitor': {...},
                     'references': [...], 'bond': {...}, 'signatures': {...}}
        assembler: Renders the PDFs
        now: Submission time (default: current UTC time)
        generate_pdfs: False stores an empty artifact set

    Returns:
        Changes to save on the intake record

    Raises:
        IntakeAlreadySubmittedError: The intake is already completed
    """
    intake_id = intake.get('id')
    if intake.get('status') == STATUS_COMPLETED:
        raise IntakeAlreadySubmittedError(f"Intake {intake_id} already submitted", intake_id=intake_id)

    now = now or datetime.now(timezone.utc)

    changes = {}
    for field_name, column in DATA_FIELDS.items():
        if field_name in submission:
            changes[column] = submission[field_name]
        elif column in submission:
            changes[column] = submission[column]
        else:
            changes[column] = intake.get(column)
    signatures = submission.get('signatures') or {}
    changes['signatures'] = signatures

    missing = missing_signatures(signatures)
    if missing:
        logger.info(f"Intake {intake_id} submitted without signatures: {', '.join(missing)}")
    else:
        logger.info(f"Intake {intake_id} submitted with all required signatures")

    generated = {}
    if generate_pdfs:
        snapshot = build_snapshot({**intake, **changes}, company_defaults)
        generated = assembler.assemble_all(snapshot, signatures, today=now.date())

    changes.update({
        'status': STATUS_COMPLETED,
        'generatedPdfs': generated,
        'submittedAt': now.isoformat(),
    })
    return changes


def pdf_display_name(key: str) -> str:
    """Human name for a stored PDF key; unknown keys are returned as is."""
    try:
        return get_form_config(key).name
    except UnknownFormTypeError:
        return key
