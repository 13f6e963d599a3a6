"""
Tests for merging rendered documents into one printable page.
"""

from services.forms.merge import extract_body, extract_styles, merge_documents
from services.forms.types import IntakeSnapshot


def document(body, style=''):
    return f'<html><head><style>{style}</style></head><body class="x">{body}</body></html>'


class TestExtract:

    def test_body(self):
        assert extract_body(document('<p>hi</p>')) == '<p>hi</p>'

    def test_case_insensitive(self):
        assert extract_body('<HTML><BODY id="a">\n<p>hi</p>\n</BODY></HTML>') == '\n<p>hi</p>\n'

    def test_no_body_returns_whole_string(self):
        assert extract_body('<p>fragment</p>') == '<p>fragment</p>'
        assert extract_body('') == ''

    def test_styles(self):
        assert extract_styles(document('', '.a { color: red; }')) == ['.a { color: red; }']
        assert extract_styles('<p>none</p>') == []


class TestMergeDocuments:

    def test_canonical_order(self, snapshot):
        documents = {
            'immigrationBondAgreement': document('<p>BOND</p>'),
            'preApplication': document('<p>PRE</p>'),
            'referenceForm': document('<p>REF</p>'),
        }
        page = merge_documents(documents, snapshot)
        assert page.index('<p>PRE</p>') < page.index('<p>REF</p>') < page.index('<p>BOND</p>')

    def test_accepts_legacy_keys(self, snapshot):
        page = merge_documents({'bondAgreement': document('<p>BOND</p>')}, snapshot)
        assert '<p>BOND</p>' in page

    def test_header(self, snapshot):
        page = merge_documents({'preApplication': document('<p>PRE</p>')}, snapshot)
        assert 'Lone Star Bail Bonds Forms - John Doe' in page
        assert 'background: #1a5276;' in page
        assert 'window.print()' in page
        assert "includes('print=true')" in page

    def test_header_escaped(self):
        snapshot = IntakeSnapshot.from_dict({
            'company': {'name': 'A & B <Bail>'},
            'defendant': {'firstName': '<i>x</i>'},
        })
        page = merge_documents({}, snapshot)
        assert 'A &amp; B &lt;Bail&gt;' in page
        assert '&lt;i&gt;x&lt;/i&gt;' in page

    def test_styles_carried_once(self, snapshot):
        documents = {
            'preApplication': document('<p>PRE</p>', '.shared { margin: 0; }'),
            'referenceForm': document('<p>REF</p>', '.shared { margin: 0; }'),
        }
        page = merge_documents(documents, snapshot)
        assert page.count('.shared { margin: 0; }') == 1
