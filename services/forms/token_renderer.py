"""
Token Renderer

Renders tenant override templates. Overrides are plain HTML containing
placeholder tokens; they replace the built-in layout wholesale.

Token syntax:
    {{defendant.firstName}}     -> snapshot.defendant['firstName']
    {{indemnitor.homePhone}}    -> snapshot.indemnitor['homePhone']
    {{bond.amount}}             -> snapshot.bond['amount']
    {{company.name}}            -> snapshot.company['name']
    {{reference2.phone}}        -> snapshot.references[2]['phone']  (0..4)
    {{signature.indemnitor}}    -> <img> for the resolved role, or ""
    {{currentDate}}             -> today as MM/DD/YYYY

Entity and reference values are HTML-escaped. Signature and date
expansions are system-generated markup and go in as-is. Anything that
does not resolve becomes "".
"""

import logging
import re
from datetime import date
from typing import Any, Mapping, Optional

from .transforms import format_date
from .types import IntakeSnapshot, NormalizedSignatures

logger = logging.getLogger(__name__)

ENTITY_NAMES = ('defendant', 'indemnitor', 'bond', 'company')

SIGNATURE_IMG = '<img src="{src}" alt="Signature" style="max-height: 38px;" />'

_ESCAPES = (
    ('&', '&amp;'),
    ('<', '&lt;'),
    ('>', '&gt;'),
    ('"', '&quot;'),
)


def escape_html(value: Any) -> str:
    """Escape &, <, > and " in a value; None becomes ""."""
    if value is None:
        return ""
    text = str(value)
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def signature_img(image: Optional[str]) -> str:
    """Inline <img> for a signature image, or "" when unsigned."""
    if not image:
        return ""
    return SIGNATURE_IMG.format(src=image)


class TokenRenderer:
    """
    Expands {{...}} tokens against one snapshot and one normalized
    signature record.
    """

    # {{ name }} or {{ name.field }}, whitespace inside the braces tolerated
    TOKEN_PATTERN = re.compile(r'\{\{\s*([a-zA-Z_][a-zA-Z0-9_]*)(?:\.([a-zA-Z_][a-zA-Z0-9_]*))?\s*\}\}')

    # reference0 .. reference4
    REFERENCE_PATTERN = re.compile(r'^reference([0-4])$')

    @classmethod
    def render(
        cls,
        template: str,
        snapshot: IntakeSnapshot,
        signatures: NormalizedSignatures,
        today: Optional[date] = None
    ) -> str:
        """
        Render a template string.

        Args:
            template: Override HTML with tokens
            snapshot: Intake data for this render pass
            signatures: Signatures normalized once for this render pass
            today: Date for {{currentDate}}; defaults to date.today()

        Returns:
            The rendered HTML
        """
        current_date = format_date(today or date.today())

        def substitute(match: 're.Match') -> str:
            return cls.resolve_token(match.group(1), match.group(2), snapshot, signatures, current_date)

        return cls.TOKEN_PATTERN.sub(substitute, template or "")

    @classmethod
    def resolve_token(
        cls,
        name: str,
        key: Optional[str],
        snapshot: IntakeSnapshot,
        signatures: NormalizedSignatures,
        current_date: str
    ) -> str:
        """Expansion for one token; unknown tokens expand to ""."""
        if key is None:
            if name == 'currentDate':
                return current_date
            logger.debug(f"Unknown token: {name}")
            return ""

        if name == 'signature':
            return signature_img(signatures.get(key))

        if name in ENTITY_NAMES:
            return cls._field_value(snapshot.entity(name), key)

        ref_match = cls.REFERENCE_PATTERN.match(name)
        if ref_match:
            return cls._field_value(snapshot.reference(int(ref_match.group(1))), key)

        logger.debug(f"Unknown token: {name}.{key}")
        return ""

    @staticmethod
    def _field_value(entity: Mapping[str, Any], key: str) -> str:
        value = entity.get(key)
        if value is None or isinstance(value, (dict, list)):
            return ""
        return escape_html(value)


def render_tokens(
    template: str,
    snapshot: IntakeSnapshot,
    signatures: NormalizedSignatures,
    today: Optional[date] = None
) -> str:
    """Convenience wrapper around TokenRenderer.render."""
    return TokenRenderer.render(template, snapshot, signatures, today=today)
