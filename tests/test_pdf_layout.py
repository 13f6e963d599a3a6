"""
Tests for the PDF backend.

Generated PDFs are read back with pypdf to check page counts and text.
"""

import io
from datetime import date

import pytest
from pypdf import PdfReader

from services.forms.exceptions import RenderError
from services.forms.pdf import LAYOUTS, PageLayout, PdfLayoutEngine, decode_image
from services.forms.signatures import normalize_signatures
from services.forms.types import FormType, IntakeSnapshot, NormalizedSignatures


TODAY = date(2026, 3, 4)


def pdf_text(pdf: bytes) -> str:
    reader = PdfReader(io.BytesIO(pdf))
    return '\n'.join(page.extract_text() or '' for page in reader.pages)


def page_count(pdf: bytes) -> int:
    return len(PdfReader(io.BytesIO(pdf)).pages)


@pytest.fixture
def engine():
    return PdfLayoutEngine()


@pytest.fixture
def signatures(signature_bag):
    return normalize_signatures(signature_bag)


class TestPdfLayoutEngine:

    @pytest.mark.parametrize('form_type, pages', [
        (FormType.PRE_APPLICATION, 1),
        (FormType.INDEMNITOR_APPLICATION, 3),
        (FormType.IMMIGRATION_BOND_AGREEMENT, 1),
        (FormType.IMMIGRATION_WAIVER, 1),
        (FormType.REFERENCE_FORM, 1),
    ])
    def test_page_counts(self, engine, snapshot, signatures, form_type, pages):
        pdf = engine.render(form_type, snapshot, signatures, today=TODAY)
        assert pdf.startswith(b'%PDF')
        assert page_count(pdf) == pages

    def test_ssn_masked(self, engine, signatures):
        snapshot = IntakeSnapshot.from_dict({
            'indemnitor': {'firstName': 'Jane', 'lastName': 'Roe', 'ssn': '987654321'},
        })
        text = pdf_text(engine.render('preApplication', snapshot, signatures, today=TODAY))
        assert 'Jane Roe' in text
        assert 'XXX-XX-4321' in text
        assert '987654321' not in text

    def test_formatted_values(self, engine, snapshot, signatures):
        text = pdf_text(engine.render('immigrationBondAgreement', snapshot, signatures, today=TODAY))
        assert '$15,000.00' in text
        assert '(713) 725-4459' in text
        assert '05/01/1990' in text

    def test_deterministic(self, engine, snapshot, signatures):
        first = engine.render('indemnitorApplication', snapshot, signatures, today=TODAY)
        second = engine.render('indemnitorApplication', snapshot, signatures, today=TODAY)
        assert first == second

    def test_only_date_fields_depend_on_today(self, engine, snapshot, signatures):
        first = engine.render('immigrationWaiver', snapshot, signatures, today=TODAY)
        later = engine.render('immigrationWaiver', snapshot, signatures, today=date(2026, 3, 5))
        assert first != later
        assert 'Date: 03/04/2026' in pdf_text(first)
        assert 'Date: 03/05/2026' in pdf_text(later)

    def test_unsigned_documents_render(self, engine, snapshot):
        pdf = engine.render('referenceForm', snapshot, NormalizedSignatures(), today=TODAY)
        assert page_count(pdf) == 1

    def test_undecodable_signature_is_skipped(self, engine, snapshot):
        signatures = normalize_signatures({'indemnitor': 'data:image/png;base64,AAAA'})
        pdf = engine.render('preApplication', snapshot, signatures, today=TODAY)
        assert page_count(pdf) == 1

    def test_layout_failure_wrapped(self, snapshot, signatures):
        def broken(layout, snapshot, signatures, today):
            raise ValueError('bad layout')

        engine = PdfLayoutEngine(layouts={**LAYOUTS, FormType.IMMIGRATION_WAIVER: broken})
        with pytest.raises(RenderError) as exc_info:
            engine.render('immigrationWaiver', snapshot, signatures, today=TODAY)
        assert exc_info.value.form_type == 'immigrationWaiver'
        assert 'bad layout' in str(exc_info.value)

    def test_missing_layout(self, snapshot, signatures):
        engine = PdfLayoutEngine(layouts={})
        with pytest.raises(RenderError):
            engine.render('referenceForm', snapshot, signatures, today=TODAY)


class TestReferenceForm:

    def test_no_references(self, engine, signatures):
        snapshot = IntakeSnapshot.from_dict({'indemnitor': {'firstName': 'Jane'}})
        text = pdf_text(engine.render('referenceForm', snapshot, signatures, today=TODAY))
        assert 'No references provided' in text

    def test_at_most_five_references(self, engine, signatures):
        references = [{'name': f'Person {i}', 'phone': '7135550100'} for i in range(1, 8)]
        snapshot = IntakeSnapshot.from_dict({'references': references})
        pdf = engine.render('referenceForm', snapshot, signatures, today=TODAY)
        text = pdf_text(pdf)
        assert page_count(pdf) == 1
        assert 'Person 5' in text
        assert 'Person 6' not in text

    def test_blank_references_not_drawn(self, engine, signatures):
        snapshot = IntakeSnapshot.from_dict({'references': [{}, {'name': 'Only One'}]})
        text = pdf_text(engine.render('referenceForm', snapshot, signatures, today=TODAY))
        assert 'Only One' in text
        assert 'Reference 2' not in text


class TestPageLayout:

    def test_embed_signature_scales_to_fit(self, signature_image):
        layout = PageLayout()
        drawn = []
        layout.canvas.drawImage = lambda image, x, y, **kwargs: drawn.append(kwargs)

        # 300x100 image into 150x40: height is the binding constraint
        assert layout.embed_signature(signature_image, 50, 100, max_width=150, max_height=40)
        assert drawn[0]['width'] == pytest.approx(120)
        assert drawn[0]['height'] == pytest.approx(40)

    def test_embed_signature_skips_bad_input(self):
        layout = PageLayout()
        assert not layout.embed_signature(None, 50, 100)
        assert not layout.embed_signature('not an image', 50, 100)
        assert not layout.embed_signature('data:image/png;base64,AAAA', 50, 100)

    def test_decode_image(self, signature_image):
        assert decode_image(signature_image).size == (300, 100)
        assert decode_image('data:image/png;base64,AAAA') is None

    def test_cursor(self):
        layout = PageLayout()
        start = layout.y
        layout.section_header('SECTION')
        assert layout.y == start - 25
        layout.new_page()
        assert layout.y == start
        assert layout.page_count == 2

    def test_finish_is_idempotent(self):
        layout = PageLayout(title='Test')
        assert layout.finish() == layout.finish()
