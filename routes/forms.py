# routes/forms.py
"""
Bail bond form routes: HTML preview, print-all page, PDF downloads and
intake submission.
"""

import io
import logging

from flask import Blueprint, current_app, jsonify, request, send_file, url_for

from services.forms import is_failed_batch, lookup_artifact
from services.forms.exceptions import UnknownFormTypeError
from services.forms.registry import get_form_config
from services.intake_service import (
    STATUS_COMPLETED,
    IntakeAlreadySubmittedError,
    IntakeStore,
    build_snapshot,
    complete_submission,
    pdf_display_name,
)

logger = logging.getLogger(__name__)

forms_bp = Blueprint('forms', __name__, url_prefix='/forms')


def get_store() -> IntakeStore:
    return current_app.extensions['intake_store']


def get_assembler():
    return current_app.extensions['form_assembler']


def company_defaults():
    """Branding fallbacks from app config."""
    defaults = {
        'name': current_app.config.get('DEFAULT_COMPANY_NAME'),
        'primaryColor': current_app.config.get('DEFAULT_BRAND_COLOR'),
    }
    return {k: v for k, v in defaults.items() if v}


def not_found(message='Intake not found'):
    return jsonify({'error': message}), 404


# =============================================================================
# HTML
# =============================================================================

@forms_bp.route('/preview/<intake_id>/<form_type>')
def preview(intake_id, form_type):
    """One document as HTML, with the signatures captured so far."""
    intake = get_store().get_intake(intake_id)
    if intake is None:
        return not_found()

    try:
        html = get_assembler().render_markup(
            form_type, build_snapshot(intake, company_defaults()), intake.get('signatures')
        )
    except UnknownFormTypeError as e:
        return jsonify({'error': str(e)}), 400
    return html


@forms_bp.route('/print/<intake_id>')
def print_all(intake_id):
    """All five documents on one printable page. Append ?print=true to auto-print."""
    intake = get_store().get_intake(intake_id)
    if intake is None:
        return not_found()

    return get_assembler().render_print_all(
        build_snapshot(intake, company_defaults()), intake.get('signatures')
    )


# =============================================================================
# PDF
# =============================================================================

@forms_bp.route('/pdf/<intake_id>')
def list_pdfs(intake_id):
    """Stored PDFs for a completed intake with download links."""
    intake = get_store().get_intake(intake_id)
    if intake is None:
        return not_found()
    if intake.get('status') != STATUS_COMPLETED:
        return jsonify({'error': 'Form not yet submitted'}), 400

    pdfs = intake.get('generatedPdfs') or {}
    payload = {
        'intakeId': intake_id,
        'submittedAt': intake.get('submittedAt'),
        'pdfs': [],
    }
    if is_failed_batch(pdfs):
        payload['error'] = pdfs['error']
        return jsonify(payload)

    for key in pdfs:
        payload['pdfs'].append({
            'formType': key,
            'name': pdf_display_name(key),
            'downloadUrl': url_for('forms.download_pdf', intake_id=intake_id, pdf_key=key),
        })
    return jsonify(payload)


@forms_bp.route('/pdf/<intake_id>/<pdf_key>')
def download_pdf(intake_id, pdf_key):
    """One stored PDF as an attachment. Accepts canonical ids and legacy keys."""
    intake = get_store().get_intake(intake_id)
    if intake is None:
        return not_found()
    if intake.get('status') != STATUS_COMPLETED:
        return jsonify({'error': 'Form not yet submitted'}), 400

    try:
        config = get_form_config(pdf_key)
    except UnknownFormTypeError as e:
        return jsonify({'error': str(e)}), 400

    pdf = lookup_artifact(intake.get('generatedPdfs'), config.form_type)
    if pdf is None:
        return not_found('PDF not found')

    defendant_name = build_snapshot(intake).defendant.get('lastName') or 'Defendant'
    filename = f"{defendant_name}_{config.download_name}.pdf"
    return send_file(
        io.BytesIO(pdf),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename,
    )


# =============================================================================
# SUBMISSION
# =============================================================================

@forms_bp.route('/submit/<intake_id>', methods=['POST'])
def submit(intake_id):
    """Complete an intake and generate its PDFs."""
    store = get_store()
    intake = store.get_intake(intake_id)
    if intake is None:
        return not_found()

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Expected a JSON object'}), 400

    try:
        changes = complete_submission(
            intake,
            data,
            get_assembler(),
            generate_pdfs=current_app.config.get('FORMS_GENERATE_PDFS_ON_SUBMIT', True),
            company_defaults=company_defaults(),
        )
    except IntakeAlreadySubmittedError:
        return jsonify({'success': False, 'error': 'Form already submitted'}), 409

    completed = store.save_intake(intake_id, changes)
    pdfs = completed.get('generatedPdfs') or {}
    logger.info(f"Intake {intake_id} completed with {len(pdfs)} stored PDF entries")
    return jsonify({
        'success': True,
        'submittedAt': completed.get('submittedAt'),
        'pdfKeys': list(pdfs.keys()),
        'pdfError': pdfs.get('error') if is_failed_batch(pdfs) else None,
    })
