"""
HTML Forms

Renders the five documents as styled HTML for on-screen preview and
printing. Each form type resolves to one of two sources:

    BuiltInTemplate   -> services/forms/templates/<form>.html (Jinja2, autoescaped)
    OverrideTemplate  -> tenant HTML rendered by the token renderer

A company's sources are resolved once per call; a render never goes
back to the template cache halfway through.
"""

import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .registry import get_form_config, get_sorted_forms
from .signatures import normalize_signatures
from .template_cache import TemplateCache
from .token_renderer import render_tokens, signature_img
from .transforms import TRANSFORMS, city_state_zip, format_date, full_address, full_name
from .types import (
    DEFAULT_COMPANY,
    CompanyTemplates,
    FormType,
    IntakeSnapshot,
    NormalizedSignatures,
    OverrideTemplate,
    TemplateSource,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / 'templates'

HEX_COLOR_PATTERN = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}$')

SignatureInput = Union[NormalizedSignatures, Mapping[str, Any], None]


def brand_color(company: Mapping[str, Any]) -> str:
    """The company's primary color if it is a hex color, else the default."""
    color = str(company.get('primaryColor') or '').strip()
    if HEX_COLOR_PATTERN.match(color):
        return color
    return DEFAULT_COMPANY['primaryColor']


def _signature_filter(image: Optional[str]) -> Markup:
    # Images reaching here passed the data URI check, so they are safe to inline
    return Markup(signature_img(image))


def as_signatures(signatures: SignatureInput) -> NormalizedSignatures:
    """Use an already-normalized record as is; normalize a raw bag."""
    if isinstance(signatures, NormalizedSignatures):
        return signatures
    return normalize_signatures(signatures)


def create_environment(template_dir: Path = TEMPLATE_DIR) -> Environment:
    """Jinja environment for the built-in templates, with transforms as filters."""
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(['html']),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters.update(TRANSFORMS)
    env.filters['full_name'] = full_name
    env.filters['city_state_zip'] = city_state_zip
    env.filters['full_address'] = full_address
    env.filters['signature_img'] = _signature_filter
    return env


class MarkupRenderer:
    """
    Renders documents to HTML from a snapshot and a signature bag.

    Usage:
        renderer = MarkupRenderer(TemplateCache(loader=store.list_templates))
        html = renderer.render('preApplication', snapshot, signature_bag)
        documents = renderer.render_all(snapshot, signature_bag)
    """

    def __init__(self, template_cache: Optional[TemplateCache] = None, template_dir: Path = TEMPLATE_DIR):
        self.template_cache = template_cache or TemplateCache()
        self.env = create_environment(template_dir)

    def render(
        self,
        form_type,
        snapshot: IntakeSnapshot,
        signatures: SignatureInput = None,
        today: Optional[date] = None
    ) -> str:
        """
        Render one document.

        Args:
            form_type: FormType or any key FormType.from_key accepts
            snapshot: Intake data
            signatures: Raw signature bag or a NormalizedSignatures
            today: Date printed in the date fields (default: date.today())

        Raises:
            UnknownFormTypeError: form_type matches no document
        """
        form_type = FormType.from_key(form_type)
        templates = self.template_cache.get_company_templates(snapshot.company_id)
        return self.render_source(
            templates.source_for(form_type), snapshot, as_signatures(signatures), today
        )

    def render_all(
        self,
        snapshot: IntakeSnapshot,
        signatures: SignatureInput = None,
        today: Optional[date] = None
    ) -> Dict[str, str]:
        """
        Render all five documents with one signature normalization and one
        template resolution.

        Returns:
            {canonical form id: html} in display order
        """
        normalized = as_signatures(signatures)
        templates = self.template_cache.get_company_templates(snapshot.company_id)
        return self.render_with(templates, snapshot, normalized, today)

    def render_with(
        self,
        templates: CompanyTemplates,
        snapshot: IntakeSnapshot,
        signatures: NormalizedSignatures,
        today: Optional[date] = None
    ) -> Dict[str, str]:
        """Render all documents against already-resolved template sources."""
        return {
            config.form_type.value: self.render_source(
                templates.source_for(config.form_type), snapshot, signatures, today
            )
            for config in get_sorted_forms()
        }

    def render_source(
        self,
        source: TemplateSource,
        snapshot: IntakeSnapshot,
        signatures: NormalizedSignatures,
        today: Optional[date] = None
    ) -> str:
        """Dispatch on the template source: override HTML or the built-in."""
        if isinstance(source, OverrideTemplate):
            logger.debug(f"Rendering {source.form_type.value} from company {snapshot.company_id} override")
            return render_tokens(source.source, snapshot, signatures, today=today)
        return self.render_builtin(source.form_type, snapshot, signatures, today)

    def render_builtin(
        self,
        form_type: FormType,
        snapshot: IntakeSnapshot,
        signatures: NormalizedSignatures,
        today: Optional[date] = None
    ) -> str:
        config = get_form_config(form_type)
        # Pick up transforms registered after the environment was built
        self.env.filters.update(TRANSFORMS)
        template = self.env.get_template(config.html_template)
        return template.render(**self._context(config, snapshot, signatures, today))

    @staticmethod
    def _context(config, snapshot: IntakeSnapshot, signatures: NormalizedSignatures,
                 today: Optional[date]) -> Dict[str, Any]:
        return {
            'form': config,
            'defendant': snapshot.defendant,
            'indemnitor': snapshot.indemnitor,
            'bond': snapshot.bond,
            'company': snapshot.company,
            'references': snapshot.reference_slots(),
            'case_info': {
                'charges': snapshot.case_value('charges'),
                'caseNumber': snapshot.case_value('caseNumber'),
                'courtName': snapshot.case_value('courtName'),
                'courtDate': snapshot.case_value('courtDate', 'appearanceDate'),
            },
            'signatures': signatures,
            'today': format_date(today or date.today()),
            'brand_color': brand_color(snapshot.company),
        }
