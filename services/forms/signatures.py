"""
Signature Normalizer

The wizard has stored signatures under several key schemes over time
('preApplication_coSigner', 'indemnitorApplication_indemnitor', plain
'indemnitor', ...). This module is the only place the raw bag is read:
it is parsed into typed submissions and resolved to the four canonical
roles every document addresses by name.
"""

import logging
import re
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from .registry import required_signature_keys
from .types import (
    FormSignature,
    FormType,
    LegacySignature,
    NormalizedSignatures,
    SignatureRole,
    SignatureSubmission,
)

logger = logging.getLogger(__name__)

# data:image/png;base64,iVBORw0...
DATA_URI_PATTERN = re.compile(r'^data:image/([a-zA-Z0-9.+-]+);base64,([A-Za-z0-9+/=\s]+)$')

LEGACY_KEYS = tuple(role.value for role in SignatureRole)

# Lookup order per role; first present and valid wins
RESOLUTION_ORDER = {
    SignatureRole.INDEMNITOR: (
        'indemnitorApplication_indemnitor',
        'immigrationBondAgreement_indemnitor',
        'preApplication_coSigner',
        'indemnitor',
    ),
    SignatureRole.DEFENDANT: (
        'preApplication_defendant',
        'defendant',
    ),
    SignatureRole.WAIVER: (
        'immigrationWaiver_coSigner',
        'waiver',
    ),
    SignatureRole.APPLICANT: (
        'referenceForm_applicant',
        'applicant',
    ),
}

# Roles that fall back to the resolved indemnitor signature
INDEMNITOR_FALLBACK = (SignatureRole.WAIVER, SignatureRole.APPLICANT)


def is_valid_image(value: Any) -> bool:
    """True for a non-empty base64 image data URI; anything else counts as unsigned."""
    if not isinstance(value, str) or not value:
        return False
    return DATA_URI_PATTERN.match(value) is not None


def parse_submission(key: str, image: Any) -> Optional[SignatureSubmission]:
    """
    Parse one bag entry into a typed submission.

    Returns None for keys that match no known scheme. The image is kept as
    given (or None when it is not a string); validity is checked later.
    """
    image = image if isinstance(image, str) else None

    if key in LEGACY_KEYS:
        return LegacySignature(key=key, image=image)

    prefix, sep, signer = key.partition('_')
    if sep and signer:
        try:
            form_type = FormType(prefix)
        except ValueError:
            return None
        return FormSignature(form_type=form_type, signer=signer, image=image)

    return None


def parse_signature_bag(bag: Optional[Mapping[str, Any]]) -> Tuple[SignatureSubmission, ...]:
    """Parse a raw signature bag, dropping keys of unknown shape."""
    if not isinstance(bag, Mapping):
        return ()

    submissions: List[SignatureSubmission] = []
    for key in sorted(str(k) for k in bag.keys()):
        submission = parse_submission(key, bag.get(key))
        if submission is None:
            logger.debug(f"Ignoring unknown signature key: {key}")
            continue
        submissions.append(submission)
    return tuple(submissions)


def normalize_signatures(
    signatures: Union[Mapping[str, Any], Iterable[SignatureSubmission], None]
) -> NormalizedSignatures:
    """
    Resolve a signature bag (or already-parsed submissions) to canonical roles.

    Resolution order, first present and valid image wins:
        indemnitor: indemnitorApplication_indemnitor, immigrationBondAgreement_indemnitor,
                    preApplication_coSigner, indemnitor
        defendant:  preApplication_defendant, defendant
        waiver:     immigrationWaiver_coSigner, waiver, then the resolved indemnitor
        applicant:  referenceForm_applicant, applicant, then the resolved indemnitor

    Pure: the same bag always yields an equal record.
    """
    if signatures is None or isinstance(signatures, Mapping):
        submissions = parse_signature_bag(signatures)
    else:
        submissions = tuple(signatures)

    images = {}
    for submission in submissions:
        if is_valid_image(submission.image):
            images[submission.key] = submission.image
        elif submission.image:
            logger.warning(f"Malformed signature image for {submission.key}, treating as unsigned")

    resolved = {}
    for role, keys in RESOLUTION_ORDER.items():
        resolved[role] = next((images[k] for k in keys if k in images), None)

    for role in INDEMNITOR_FALLBACK:
        if resolved[role] is None:
            resolved[role] = resolved[SignatureRole.INDEMNITOR]

    return NormalizedSignatures(**{role.value: image for role, image in resolved.items()})


def missing_signatures(bag: Optional[Mapping[str, Any]]) -> List[str]:
    """
    The required per-form submission keys that are absent or invalid.

    Informational only; submission never blocks on it.
    """
    bag = bag if isinstance(bag, Mapping) else {}
    return [key for key in required_signature_keys() if not is_valid_image(bag.get(key))]
