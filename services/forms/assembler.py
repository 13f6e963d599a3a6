"""
Document Assembly

Entry point for turning an intake into its documents:

    assembler = DocumentAssembler(TemplateCache(loader=store.list_templates))

    # Five PDFs, base64 encoded, keyed by legacy binary key
    artifacts = assembler.assemble_all(snapshot, signature_bag)
    # -> {'preApplication': 'JVBERi0...', 'indemnitorApp': ..., ...}
    # -> {'error': '...'} when any document failed

    # HTML preview of one document, or all five merged for printing
    html = assembler.render_markup('immigration-waiver', snapshot, signature_bag)
    page = assembler.render_print_all(snapshot, signature_bag)

The PDF batch is all-or-nothing and never raises; callers store the
sentinel and the submission still completes.
"""

import base64
import binascii
import logging
from datetime import date
from typing import Any, Dict, Mapping, Optional

from .exceptions import UnknownFormTypeError
from .html_forms import MarkupRenderer, SignatureInput, as_signatures
from .merge import merge_documents
from .pdf import PdfLayoutEngine
from .registry import PDF_ORDER
from .template_cache import TemplateCache
from .types import FormType, IntakeSnapshot

logger = logging.getLogger(__name__)

ERROR_KEY = 'error'


class DocumentAssembler:
    """Owns the template cache and both render backends."""

    def __init__(
        self,
        template_cache: Optional[TemplateCache] = None,
        layout_engine: Optional[PdfLayoutEngine] = None,
        markup_renderer: Optional[MarkupRenderer] = None
    ):
        self.template_cache = template_cache or TemplateCache()
        self.layout_engine = layout_engine or PdfLayoutEngine()
        self.markup_renderer = markup_renderer or MarkupRenderer(self.template_cache)

    def assemble_all(
        self,
        snapshot: IntakeSnapshot,
        signature_bag: SignatureInput = None,
        today: Optional[date] = None
    ) -> Dict[str, str]:
        """
        Render the five PDFs in fixed order.

        Returns:
            {legacy pdf key: base64 PDF}, or {'error': message} if any
            document failed
        """
        try:
            signatures = as_signatures(signature_bag)
            artifacts = {}
            for form_type in PDF_ORDER:
                pdf = self.layout_engine.render(form_type, snapshot, signatures, today=today)
                artifacts[form_type.pdf_key] = base64.b64encode(pdf).decode('ascii')
            logger.info(f"Generated {len(artifacts)} PDFs for company {snapshot.company_id}")
            return artifacts
        except Exception as e:
            logger.exception(f"PDF generation failed for company {snapshot.company_id}: {e}")
            return {ERROR_KEY: str(e) or e.__class__.__name__}

    def render_markup(
        self,
        form_type,
        snapshot: IntakeSnapshot,
        signature_bag: SignatureInput = None,
        today: Optional[date] = None
    ) -> str:
        """HTML for one document. Raises UnknownFormTypeError for a bad key."""
        return self.markup_renderer.render(form_type, snapshot, signature_bag, today=today)

    def render_print_all(
        self,
        snapshot: IntakeSnapshot,
        signature_bag: SignatureInput = None,
        today: Optional[date] = None
    ) -> str:
        """All five documents merged into one printable page."""
        documents = self.markup_renderer.render_all(snapshot, signature_bag, today=today)
        return merge_documents(documents, snapshot)

    def invalidate_templates(self, company_id: Optional[str] = None) -> None:
        """Drop cached templates after an override is saved or deleted."""
        self.template_cache.invalidate(company_id)


def is_failed_batch(artifacts: Optional[Mapping[str, Any]]) -> bool:
    return bool(artifacts) and ERROR_KEY in artifacts


def lookup_artifact(artifacts: Optional[Mapping[str, Any]], key) -> Optional[bytes]:
    """
    Decoded PDF bytes for a document from a stored artifact set.

    Accepts a canonical id, legacy binary key or kebab slug. Returns None
    when the key is unknown, the batch failed, or the document is missing.
    """
    if not artifacts or is_failed_batch(artifacts):
        return None
    try:
        form_type = FormType.from_key(key)
    except UnknownFormTypeError:
        return None

    encoded = artifacts.get(form_type.pdf_key) or artifacts.get(form_type.value)
    if not encoded:
        return None
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError, TypeError):
        logger.warning(f"Stored PDF for {form_type.value} is not valid base64")
        return None
