# services/forms/template_cache.py
"""
Read-through cache of per-company template sources.

Each company may store an active HTML override per form type. Loaded rows
are resolved into one immutable CompanyTemplates and cached by company id
until explicitly invalidated. There is no expiry: every write to a
company's templates must call invalidate(company_id).

Concurrency: lookups and invalidations are synchronized with a lock. The
loader itself runs outside the lock; a generation counter per company
keeps a load that raced an invalidation from being stored.
"""

import logging
import threading
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from .exceptions import TemplateLoadError, UnknownFormTypeError
from .types import BuiltInTemplate, CompanyTemplates, FormType, OverrideTemplate

logger = logging.getLogger(__name__)

# loader(company_id) -> rows with 'formType', 'htmlTemplate', 'isActive'
TemplateLoader = Callable[[str], Iterable[Mapping[str, Any]]]


def build_company_templates(company_id: Optional[str], rows: Iterable[Mapping[str, Any]]) -> CompanyTemplates:
    """
    Resolve stored template rows into CompanyTemplates.

    Inactive and empty rows are skipped. If more than one active row
    exists for a form type the first one wins.
    """
    sources: Dict[FormType, Any] = {}

    for row in rows or ():
        if not isinstance(row, Mapping) or not row.get('isActive', True):
            continue

        html = row.get('htmlTemplate')
        if not isinstance(html, str) or not html.strip():
            continue

        try:
            form_type = FormType.from_key(row.get('formType'))
        except UnknownFormTypeError:
            logger.warning(f"Company {company_id}: ignoring template for unknown form type {row.get('formType')!r}")
            continue

        if form_type in sources:
            logger.warning(
                f"Company {company_id}: multiple active templates for {form_type.value}, using the first"
            )
            continue

        sources[form_type] = OverrideTemplate(form_type=form_type, source=html)

    for form_type in FormType:
        sources.setdefault(form_type, BuiltInTemplate(form_type))

    return CompanyTemplates(company_id=company_id, sources=MappingProxyType(sources))


class TemplateCache:
    """
    Per-company template cache with explicit invalidation.

    Usage:
        cache = TemplateCache(loader=store.list_templates)
        templates = cache.get_company_templates(company_id)
        ...
        cache.invalidate(company_id)   # after saving that company's templates
    """

    def __init__(self, loader: Optional[TemplateLoader] = None):
        self._loader = loader
        self._entries: Dict[str, CompanyTemplates] = {}
        self._generations: Dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def get_company_templates(self, company_id: Optional[str]) -> CompanyTemplates:
        """
        Get the template sources for a company.

        Companies without an id, or a cache without a loader, always get the
        built-ins. A loader failure returns the built-ins for this call only;
        the next call retries the load.
        """
        if company_id is None or self._loader is None:
            return CompanyTemplates.built_in(company_id)

        key = str(company_id)
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                return cached
            token = (self._epoch, self._generations.get(key, 0))

        try:
            templates = self._load(key)
        except TemplateLoadError as e:
            logger.error(f"Error loading templates for company {key}: {e}")
            return CompanyTemplates.built_in(key)

        with self._lock:
            if token == (self._epoch, self._generations.get(key, 0)):
                # A concurrent load may have won; keep whichever landed first
                return self._entries.setdefault(key, templates)
        logger.debug(f"Templates for company {key} invalidated during load, not caching")
        return templates

    def get_override(self, company_id: Optional[str], form_type) -> Optional[str]:
        """Override HTML for one company and form type, or None."""
        return self.get_company_templates(company_id).override_for(FormType.from_key(form_type))

    def invalidate(self, company_id: Optional[str] = None) -> None:
        """Drop the cached templates for one company, or for all companies."""
        with self._lock:
            if company_id is None:
                self._entries.clear()
                self._epoch += 1
                logger.info("Cleared template cache for all companies")
                return

            key = str(company_id)
            self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1
        logger.info(f"Cleared template cache for company {key}")

    def is_cached(self, company_id: str) -> bool:
        with self._lock:
            return str(company_id) in self._entries

    def _load(self, company_id: str) -> CompanyTemplates:
        try:
            rows = list(self._loader(company_id) or ())
        except Exception as e:
            raise TemplateLoadError(str(e), company_id=company_id) from e
        templates = build_company_templates(company_id, rows)
        if templates.has_overrides:
            logger.info(f"Loaded custom templates for company {company_id}")
        return templates
