"""
Bail Bond Form Generation

Turns one intake into the five bail-bond documents, as HTML for preview
and printing and as PDFs for the legal record.

Usage:
    from services.forms import DocumentAssembler, IntakeSnapshot, TemplateCache

    # On app startup
    assembler = DocumentAssembler(TemplateCache(loader=store.list_templates))

    # When an intake is submitted
    snapshot = IntakeSnapshot.from_dict(intake_data)
    artifacts = assembler.assemble_all(snapshot, signature_bag)

    # When a template override is saved
    assembler.invalidate_templates(company_id)
"""

from .types import (
    FormType,
    SignatureRole,
    IntakeSnapshot,
    FormSignature,
    LegacySignature,
    NormalizedSignatures,
    BuiltInTemplate,
    OverrideTemplate,
    CompanyTemplates
)

from .exceptions import (
    FormError,
    UnknownFormTypeError,
    TemplateLoadError,
    RenderError
)

from .registry import FORM_REGISTRY, PDF_ORDER, FormConfig, get_form_config, get_sorted_forms
from .signatures import is_valid_image, missing_signatures, normalize_signatures, parse_signature_bag
from .token_renderer import TokenRenderer, render_tokens
from .template_cache import TemplateCache
from .html_forms import MarkupRenderer
from .pdf import PageLayout, PdfLayoutEngine
from .merge import extract_body, merge_documents
from .assembler import DocumentAssembler, is_failed_batch, lookup_artifact
from .transforms import TRANSFORMS, apply_transform, register_transform

__all__ = [
    # Types
    'FormType',
    'SignatureRole',
    'IntakeSnapshot',
    'FormSignature',
    'LegacySignature',
    'NormalizedSignatures',
    'BuiltInTemplate',
    'OverrideTemplate',
    'CompanyTemplates',

    # Exceptions
    'FormError',
    'UnknownFormTypeError',
    'TemplateLoadError',
    'RenderError',

    # Registry
    'FORM_REGISTRY',
    'PDF_ORDER',
    'FormConfig',
    'get_form_config',
    'get_sorted_forms',

    # Signatures
    'is_valid_image',
    'missing_signatures',
    'normalize_signatures',
    'parse_signature_bag',

    # Rendering
    'TokenRenderer',
    'render_tokens',
    'TemplateCache',
    'MarkupRenderer',
    'PageLayout',
    'PdfLayoutEngine',
    'extract_body',
    'merge_documents',
    'DocumentAssembler',
    'is_failed_batch',
    'lookup_artifact',

    # Transforms
    'TRANSFORMS',
    'apply_transform',
    'register_transform',
]
