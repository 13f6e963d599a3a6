"""
Tests for the /forms blueprint using the Flask test client.
"""

import pytest


@pytest.fixture
def submitted(client, signature_bag):
    response = client.post('/forms/submit/intake-1', json={'signatures': signature_bag})
    assert response.status_code == 200
    return response


class TestPreview:

    def test_preview_html(self, client):
        response = client.get('/forms/preview/intake-1/preApplication')
        assert response.status_code == 200
        assert response.mimetype == 'text/html'
        assert b'PRE - APPLICATION' in response.data

    def test_preview_by_slug(self, client):
        response = client.get('/forms/preview/intake-1/immigration-bond-agreement')
        assert response.status_code == 200
        assert b'IMMIGRATION BOND AGREEMENT' in response.data

    def test_unknown_form_type(self, client):
        response = client.get('/forms/preview/intake-1/bailReceipt')
        assert response.status_code == 400
        assert 'bailReceipt' in response.get_json()['error']

    def test_unknown_intake(self, client):
        assert client.get('/forms/preview/nope/preApplication').status_code == 404

    def test_override_after_invalidation(self, client, flask_app, store):
        store.set_templates('co-1', [{
            'formType': 'referenceForm',
            'htmlTemplate': '<p>Custom {{defendant.lastName}}</p>',
            'isActive': True,
        }])
        flask_app.extensions['form_assembler'].invalidate_templates('co-1')
        response = client.get('/forms/preview/intake-1/referenceForm')
        assert response.data == b'<p>Custom Doe</p>'


class TestPrintAll:

    def test_print_page(self, client):
        response = client.get('/forms/print/intake-1')
        assert response.status_code == 200
        assert b'Print / Save as PDF' in response.data
        assert b'Lone Star Bail Bonds Forms - John Doe' in response.data

    def test_unknown_intake(self, client):
        assert client.get('/forms/print/nope').status_code == 404


class TestSubmit:

    def test_submit(self, submitted, store):
        data = submitted.get_json()
        assert data['success'] is True
        assert data['pdfKeys'] == [
            'preApplication', 'indemnitorApp', 'bondAgreement', 'immigrationWaiver', 'referenceForm',
        ]
        assert data['pdfError'] is None
        assert store.get_intake('intake-1')['status'] == 'COMPLETED'

    def test_submit_twice(self, client, submitted):
        response = client.post('/forms/submit/intake-1', json={})
        assert response.status_code == 409

    def test_bad_body(self, client):
        response = client.post('/forms/submit/intake-1', data='not json', content_type='text/plain')
        assert response.status_code == 400

    def test_unknown_intake(self, client):
        assert client.post('/forms/submit/nope', json={}).status_code == 404


class TestPdfDownloads:

    def test_not_submitted(self, client):
        assert client.get('/forms/pdf/intake-1').status_code == 400
        assert client.get('/forms/pdf/intake-1/preApplication').status_code == 400

    def test_list(self, client, submitted):
        data = client.get('/forms/pdf/intake-1').get_json()
        assert [pdf['formType'] for pdf in data['pdfs']] == [
            'preApplication', 'indemnitorApp', 'bondAgreement', 'immigrationWaiver', 'referenceForm',
        ]
        assert data['pdfs'][1]['name'] == 'Indemnitor Application'
        assert data['pdfs'][1]['downloadUrl'] == '/forms/pdf/intake-1/indemnitorApp'
        assert 'error' not in data

    def test_download(self, client, submitted):
        response = client.get('/forms/pdf/intake-1/indemnitorApp')
        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')
        assert 'Doe_Indemnitor_Application.pdf' in response.headers['Content-Disposition']

    def test_download_with_malformed_defendant(self, client, store, submitted):
        store.save_intake('intake-1', {'defendantData': 'draft'})
        response = client.get('/forms/pdf/intake-1/preApplication')
        assert response.status_code == 200
        assert 'Defendant_Pre-Application.pdf' in response.headers['Content-Disposition']

    def test_download_by_canonical_id(self, client, submitted):
        legacy = client.get('/forms/pdf/intake-1/bondAgreement').data
        canonical = client.get('/forms/pdf/intake-1/immigrationBondAgreement').data
        assert legacy == canonical

    def test_unknown_pdf_key(self, client, submitted):
        assert client.get('/forms/pdf/intake-1/bailReceipt').status_code == 400

    def test_failed_batch(self, client, store):
        store.save_intake('intake-1', {'status': 'COMPLETED', 'generatedPdfs': {'error': 'renderer down'}})
        data = client.get('/forms/pdf/intake-1').get_json()
        assert data['pdfs'] == []
        assert data['error'] == 'renderer down'
        assert client.get('/forms/pdf/intake-1/preApplication').status_code == 404

    def test_unknown_intake(self, client):
        assert client.get('/forms/pdf/nope').status_code == 404
