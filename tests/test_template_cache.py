"""
Tests for per-company template resolution and caching.
"""

import logging

import pytest

from services.forms.template_cache import TemplateCache, build_company_templates
from services.forms.types import BuiltInTemplate, FormType, OverrideTemplate


class CountingLoader:
    """Template loader that records how often each company is loaded."""

    def __init__(self, rows_by_company):
        self.rows_by_company = rows_by_company
        self.calls = []

    def __call__(self, company_id):
        self.calls.append(company_id)
        return self.rows_by_company.get(company_id, [])


def override_row(form_type, html, active=True):
    return {'formType': form_type, 'htmlTemplate': html, 'isActive': active}


class TestBuildCompanyTemplates:

    def test_fills_missing_forms_with_built_ins(self):
        templates = build_company_templates('co-1', [override_row('preApplication', '<p>custom</p>')])
        assert templates.source_for(FormType.PRE_APPLICATION) == OverrideTemplate(
            FormType.PRE_APPLICATION, '<p>custom</p>'
        )
        assert templates.source_for(FormType.REFERENCE_FORM) == BuiltInTemplate(FormType.REFERENCE_FORM)
        assert len(templates.sources) == 5
        assert templates.has_overrides

    def test_inactive_and_empty_rows_skipped(self):
        templates = build_company_templates('co-1', [
            override_row('preApplication', '<p>old</p>', active=False),
            override_row('referenceForm', '   '),
        ])
        assert not templates.has_overrides

    def test_unknown_form_type_skipped(self, caplog):
        templates = build_company_templates('co-1', [override_row('bailReceipt', '<p>x</p>')])
        assert not templates.has_overrides
        assert 'unknown form type' in caplog.text

    def test_duplicate_active_rows_first_wins(self, caplog):
        with caplog.at_level(logging.WARNING):
            templates = build_company_templates('co-1', [
                override_row('immigrationWaiver', '<p>first</p>'),
                override_row('immigration-waiver', '<p>second</p>'),
            ])
        assert templates.override_for(FormType.IMMIGRATION_WAIVER) == '<p>first</p>'
        assert 'multiple active templates' in caplog.text


class TestTemplateCache:

    @pytest.fixture
    def loader(self):
        return CountingLoader({'co-1': [override_row('preApplication', '<p>v1</p>')]})

    def test_read_through(self, loader):
        cache = TemplateCache(loader=loader)
        first = cache.get_company_templates('co-1')
        second = cache.get_company_templates('co-1')
        assert first is second
        assert loader.calls == ['co-1']
        assert cache.is_cached('co-1')

    def test_custom_templates_logged(self, loader, caplog):
        cache = TemplateCache(loader=loader)
        with caplog.at_level(logging.INFO):
            cache.get_company_templates('co-1')
            cache.get_company_templates('co-2')
        assert 'Loaded custom templates for company co-1' in caplog.text
        assert 'co-2' not in caplog.text

    def test_invalidate_company(self, loader):
        cache = TemplateCache(loader=loader)
        assert cache.get_override('co-1', 'preApplication') == '<p>v1</p>'

        loader.rows_by_company['co-1'] = [override_row('preApplication', '<p>v2</p>')]
        assert cache.get_override('co-1', 'preApplication') == '<p>v1</p>'

        cache.invalidate('co-1')
        assert cache.get_override('co-1', 'preApplication') == '<p>v2</p>'
        assert loader.calls == ['co-1', 'co-1']

    def test_invalidate_all(self, loader):
        cache = TemplateCache(loader=loader)
        cache.get_company_templates('co-1')
        cache.get_company_templates('co-2')
        cache.invalidate()
        assert not cache.is_cached('co-1')
        assert not cache.is_cached('co-2')

    def test_no_company_or_loader_uses_built_ins(self, loader):
        assert not TemplateCache(loader=loader).get_company_templates(None).has_overrides
        assert not TemplateCache().get_company_templates('co-1').has_overrides
        assert loader.calls == []

    def test_loader_failure_not_cached(self, caplog):
        calls = []

        def failing_loader(company_id):
            calls.append(company_id)
            raise RuntimeError('database unavailable')

        cache = TemplateCache(loader=failing_loader)
        templates = cache.get_company_templates('co-1')
        assert not templates.has_overrides
        assert not cache.is_cached('co-1')
        assert 'database unavailable' in caplog.text

        cache.get_company_templates('co-1')
        assert calls == ['co-1', 'co-1']

    def test_load_racing_invalidation_not_cached(self):
        cache = None

        def racing_loader(company_id):
            # A template write lands while this load is in flight
            cache.invalidate(company_id)
            return [override_row('referenceForm', '<p>stale</p>')]

        cache = TemplateCache(loader=racing_loader)
        templates = cache.get_company_templates('co-1')
        assert templates.override_for(FormType.REFERENCE_FORM) == '<p>stale</p>'
        assert not cache.is_cached('co-1')

    def test_override_for_built_in_is_none(self, loader):
        cache = TemplateCache(loader=loader)
        assert cache.get_override('co-1', 'referenceForm') is None
