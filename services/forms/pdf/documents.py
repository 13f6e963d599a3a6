"""
PDF Document Layouts

One function per canonical document. Each draws a fixed sequence of
PageLayout primitives; multi-page documents call new_page() explicitly.
Sensitive and typed values always go through the formatters: SSNs are
masked, phones/dates/currency are formatted.

Layouts are sized for at most IntakeSnapshot.MAX_REFERENCES references.
"""

import logging
from datetime import date
from typing import Callable, Dict, Optional

from ..exceptions import RenderError
from ..registry import get_form_config
from ..transforms import (
    city_state_zip,
    format_currency,
    format_date,
    format_gender,
    format_phone,
    format_yes_no,
    full_address,
    full_name,
    mask_tail,
)
from ..types import FormType, IntakeSnapshot, NormalizedSignatures
from .layout import LABEL_GREY, MUTED_GREY, PageLayout

logger = logging.getLogger(__name__)

COL1 = PageLayout.COL1
COL2 = PageLayout.COL2
ROW = PageLayout.ROW

DEFAULT_COMPANY_NAME = 'Bail Bonds Company'

# (layout, snapshot, signatures, date text) -> None
LayoutFunc = Callable[[PageLayout, IntakeSnapshot, NormalizedSignatures, str], None]


def _text(value) -> str:
    if value is None:
        return ''
    return str(value)


def _company_name(snapshot: IntakeSnapshot) -> str:
    return _text(snapshot.company.get('name')) or DEFAULT_COMPANY_NAME


def _draw_reference(layout: PageLayout, ref, x: float) -> None:
    """Name/relationship, phones and address for one reference."""
    layout.field('Name', _text(ref.get('name')), x=x, label_width=40)
    layout.field('Relationship', _text(ref.get('relationship')), x=COL2, label_width=80)
    layout.advance(14)

    layout.field('Phone', format_phone(ref.get('phone')), x=x, label_width=40)
    layout.field('Work Phone', format_phone(ref.get('workPhone')), x=COL2, label_width=80)
    layout.advance(14)

    address = full_address(ref)
    if address:
        layout.field('Address', address, x=x, label_width=50)
        layout.advance(14)


# =============================================================================
# PRE-APPLICATION
# =============================================================================

def draw_pre_application(layout: PageLayout, snapshot: IntakeSnapshot,
                         signatures: NormalizedSignatures, today: str) -> None:
    defendant = snapshot.defendant
    indemnitor = snapshot.indemnitor

    layout.title('PRE-APPLICATION', _company_name(snapshot))

    layout.section_header('CO-SIGNER / INDEMNITOR INFORMATION')
    layout.field('Full Name', full_name(indemnitor))
    layout.field('Relationship', _text(indemnitor.get('relationshipToDefendant')), x=COL2)
    layout.advance(ROW)
    layout.field('Date of Birth', format_date(indemnitor.get('dob')))
    layout.field('SSN', mask_tail(indemnitor.get('ssn')), x=COL2)
    layout.advance(ROW)
    layout.field('Home Phone', format_phone(indemnitor.get('homePhone')))
    layout.field('Cell Phone', format_phone(indemnitor.get('cellPhone')), x=COL2)
    layout.advance(ROW)
    layout.field('Work Phone', format_phone(indemnitor.get('workPhone')))
    layout.field('Email', _text(indemnitor.get('email')), x=COL2)
    layout.advance(ROW)
    layout.field('Address', _text(indemnitor.get('address')), label_width=60)
    layout.advance(ROW)
    layout.field('City/State/Zip', city_state_zip(indemnitor))
    layout.advance(ROW)
    layout.field("Driver's License", _text(indemnitor.get('driversLicense')))
    layout.field('DL State', _text(indemnitor.get('dlState')), x=COL2)
    layout.advance(ROW)
    layout.field('Employer', _text(indemnitor.get('employer')))
    layout.field('Position', _text(indemnitor.get('position') or indemnitor.get('occupation')), x=COL2)
    layout.advance(30)
    layout.rule()
    layout.advance(20)

    layout.section_header('DEFENDANT INFORMATION')
    layout.field('Full Name', full_name(defendant))
    layout.field('AKA/Alias', _text(defendant.get('aka')), x=COL2)
    layout.advance(ROW)
    layout.field('Date of Birth', format_date(defendant.get('dob')))
    layout.field('SSN', mask_tail(defendant.get('ssn')), x=COL2)
    layout.advance(ROW)
    layout.field('Home Phone', format_phone(defendant.get('homePhone')))
    layout.field('Cell Phone', format_phone(defendant.get('cellPhone')), x=COL2)
    layout.advance(ROW)
    layout.field('Address', _text(defendant.get('address')), label_width=60)
    layout.advance(ROW)
    layout.field('City/State/Zip', city_state_zip(defendant))
    layout.advance(ROW)
    layout.field('Employer', _text(defendant.get('employer')))
    layout.field('Occupation', _text(defendant.get('occupation')), x=COL2)
    layout.advance(30)
    layout.rule()
    layout.advance(20)

    layout.section_header('CASE INFORMATION')
    layout.field('Charges', _text(snapshot.case_value('charges')))
    layout.advance(ROW)
    layout.field('Case Number', _text(snapshot.case_value('caseNumber')))
    layout.field('Court', _text(snapshot.case_value('courtName')), x=COL2)
    layout.advance(ROW)
    layout.field('Jail Location', _text(defendant.get('jailLocation')))
    layout.field('Booking #', _text(defendant.get('bookingNumber')), x=COL2)
    layout.advance(ROW)
    layout.field('Arrest Date', format_date(defendant.get('arrestDate')))
    layout.field('Court Date', format_date(snapshot.case_value('courtDate', 'appearanceDate')), x=COL2)
    layout.advance(40)
    layout.rule()
    layout.advance(20)

    layout.section_header('SIGNATURES')
    layout.signature_block('Co-Signer/Indemnitor Signature:', signatures.indemnitor, today)
    layout.signature_block('Defendant Signature (if available):', signatures.defendant, today)


# =============================================================================
# INDEMNITOR APPLICATION (3 pages)
# =============================================================================

INDEMNITY_TERMS = [
    '1. PREMIUM: The premium charged for the bail bond is fully earned upon execution of the bond',
    '   and is NOT refundable under any circumstances.',
    '',
    '2. INDEMNIFICATION: The undersigned agrees to indemnify and hold harmless the Surety from',
    '   all claims, demands, liabilities, costs, charges, legal fees and expenses of whatever kind.',
    '',
    '3. COLLATERAL: Any collateral deposited shall be held as security and may be applied to any',
    '   losses or expenses incurred by the Surety.',
    '',
    '4. DEFENDANT APPEARANCE: The undersigned guarantees that the defendant will appear at all',
    '   court proceedings until the case is fully disposed.',
    '',
    '5. BREACH: If the defendant fails to appear, the undersigned shall be liable for:',
    '   - The full amount of the bail bond',
    '   - All costs of apprehension and return of the defendant',
    '   - Attorney fees and court costs',
    '   - Any other expenses incurred by the Surety',
    '',
    '6. SURRENDER: The Surety reserves the right to surrender the defendant to custody at any time.',
    '',
    '7. CHANGES: Any change of address or contact information must be reported immediately.',
]


def draw_indemnitor_application(layout: PageLayout, snapshot: IntakeSnapshot,
                                signatures: NormalizedSignatures, today: str) -> None:
    defendant = snapshot.defendant
    indemnitor = snapshot.indemnitor

    # Page 1 - defendant, indemnitor, employment
    layout.title('BAIL BOND APPLICATION - INDEMNITOR', _company_name(snapshot))

    layout.section_header('DEFENDANT INFORMATION')
    layout.field('Defendant Name', full_name(defendant))
    layout.field('DOB', format_date(defendant.get('dob')), x=COL2, label_width=40)
    layout.advance(ROW)
    layout.field('Charges', _text(snapshot.case_value('charges')))
    layout.advance(ROW)
    layout.field('Case Number', _text(snapshot.case_value('caseNumber')))
    layout.field('Court', _text(snapshot.case_value('courtName')), x=COL2, label_width=40)
    layout.advance(ROW)
    layout.field('Jail/Facility', _text(defendant.get('jailLocation')))
    layout.field('Booking #', _text(defendant.get('bookingNumber')), x=COL2, label_width=60)
    layout.advance(ROW)
    layout.field('Court Date', format_date(snapshot.case_value('courtDate', 'appearanceDate')))
    layout.advance(30)
    layout.rule()
    layout.advance(20)

    layout.section_header('INDEMNITOR INFORMATION')
    layout.field('Full Name', full_name(indemnitor))
    layout.field('Nickname', _text(indemnitor.get('nickname')), x=COL2, label_width=60)
    layout.advance(ROW)
    layout.field('Relationship', _text(indemnitor.get('relationshipToDefendant')))
    layout.field('DOB', format_date(indemnitor.get('dob')), x=COL2, label_width=40)
    layout.advance(ROW)
    layout.field('SSN', mask_tail(indemnitor.get('ssn')))
    layout.field('Gender', format_gender(indemnitor.get('gender')), x=COL2, label_width=50)
    layout.advance(ROW)
    layout.field('Home Phone', format_phone(indemnitor.get('homePhone')))
    layout.field('Cell Phone', format_phone(indemnitor.get('cellPhone')), x=COL2, label_width=70)
    layout.advance(ROW)
    layout.field('Work Phone', format_phone(indemnitor.get('workPhone')))
    layout.field('Email', _text(indemnitor.get('email')), x=COL2, label_width=40)
    layout.advance(ROW)
    layout.field('Address', _text(indemnitor.get('address')), label_width=55)
    layout.advance(ROW)
    layout.field('City/State/Zip', city_state_zip(indemnitor))
    layout.advance(ROW)
    layout.field("Driver's License", _text(indemnitor.get('driversLicense')))
    layout.field('State', _text(indemnitor.get('dlState')), x=COL2, label_width=40)
    layout.advance(ROW)
    layout.field('US Citizen', format_yes_no(indemnitor.get('usCitizen')))
    layout.field('Marital Status', _text(indemnitor.get('maritalStatus')), x=COL2, label_width=80)
    layout.advance(30)
    layout.rule()
    layout.advance(20)

    layout.section_header('EMPLOYMENT INFORMATION')
    layout.field('Employer', _text(indemnitor.get('employer')))
    layout.field('Position', _text(indemnitor.get('position') or indemnitor.get('occupation')),
                 x=COL2, label_width=55)
    layout.advance(ROW)
    layout.field('Employer Phone', format_phone(indemnitor.get('employerPhone')))
    layout.field('Monthly Income', format_currency(indemnitor.get('monthlyIncome')), x=COL2, label_width=90)
    layout.advance(ROW)
    own_rent = indemnitor.get('ownershipStatus')
    if not own_rent and isinstance(indemnitor.get('ownsHome'), bool):
        own_rent = 'Own' if indemnitor.get('ownsHome') else 'Rent'
    layout.field('Own/Rent', _text(own_rent))

    # Page 2 - references and signature
    layout.new_page()
    layout.text('BAIL BOND APPLICATION - INDEMNITOR (Page 2)', x=layout.width / 2 - 140, size=14, bold=True)
    layout.advance(30)
    layout.rule()
    layout.advance(20)

    layout.section_header('PERSONAL REFERENCES')
    for i, ref in enumerate(snapshot.provided_references()):
        layout.text(f"Reference {i + 1}:", size=10, bold=True)
        layout.advance(ROW)
        _draw_reference(layout, ref, x=COL1 + 20)
        layout.advance(6)
        layout.rule()
        layout.advance(15)

    layout.advance(20)
    layout.section_header('INDEMNITOR SIGNATURE')
    layout.text('I certify that all information provided is true and correct.', size=9, color=LABEL_GREY)
    layout.advance(20)
    layout.signature_block(
        'Signature:', signatures.indemnitor, today,
        image_x=COL1 + 60, image_drop=40, max_width=180, max_height=40, date_x=320,
        printed_name=full_name(indemnitor),
    )

    # Page 3 - terms
    layout.new_page()
    layout.text('INDEMNITY AGREEMENT - TERMS AND CONDITIONS', x=layout.width / 2 - 150, size=14, bold=True)
    layout.advance(30)
    layout.rule()
    layout.advance(20)
    layout.paragraph(INDEMNITY_TERMS, size=9, leading=14)


# =============================================================================
# IMMIGRATION BOND AGREEMENT
# =============================================================================

BOND_TERMS = [
    'TERMS: The premium is fully earned and NON-REFUNDABLE. The undersigned agrees',
    'to indemnify the Surety for any and all losses arising from this bond.',
]


def draw_bond_agreement(layout: PageLayout, snapshot: IntakeSnapshot,
                        signatures: NormalizedSignatures, today: str) -> None:
    defendant = snapshot.defendant
    indemnitor = snapshot.indemnitor
    bond = snapshot.bond

    layout.title('IMMIGRATION BOND AGREEMENT', _company_name(snapshot))

    layout.section_header('AGREEMENT DETAILS')
    layout.field('Defendant/Alien', full_name(defendant))
    layout.advance(ROW)
    layout.field('Alien Number', _text(defendant.get('alienNumber')))
    layout.field('DOB', format_date(defendant.get('dob')), x=COL2, label_width=40)
    layout.advance(ROW)
    layout.field('Defendant Address', full_address(defendant), label_width=110)
    layout.advance(30)
    layout.rule()
    layout.advance(20)

    layout.section_header('INDEMNITOR INFORMATION')
    layout.field('Indemnitor Name', full_name(indemnitor))
    layout.advance(ROW)
    layout.field('Indemnitor Address', full_address(indemnitor), label_width=110)
    layout.advance(ROW)
    layout.field('Phone', format_phone(indemnitor.get('cellPhone') or indemnitor.get('homePhone')))
    layout.field('Email', _text(indemnitor.get('email')), x=COL2, label_width=40)
    layout.advance(30)
    layout.rule()
    layout.advance(20)

    layout.section_header('BOND DETAILS')
    layout.field('Bond Amount', format_currency(bond.get('amount')))
    layout.field('Premium', format_currency(bond.get('premium')), x=COL2, label_width=60)
    layout.advance(ROW)
    layout.field('Power Number', _text(bond.get('powerNumber')))
    layout.advance(40)
    layout.rule()
    layout.advance(20)

    layout.paragraph(BOND_TERMS, size=9, leading=14)
    layout.advance(16)

    layout.section_header('INDEMNITOR SIGNATURE')
    layout.signature_block(
        'Signature:', signatures.indemnitor, today,
        image_x=COL1 + 60, image_drop=40, max_width=180, max_height=40, date_x=320,
        printed_name=full_name(indemnitor),
    )


# =============================================================================
# IMMIGRATION WAIVER
# =============================================================================

def waiver_text_english(indemnitor_name: str, defendant_name: str):
    return [
        f"I, {indemnitor_name}, the undersigned co-signer/indemnitor, do hereby represent and warrant",
        f"that {defendant_name}, the defendant, IS A CITIZEN OF THE UNITED STATES.",
        '',
        'I understand that if the defendant is NOT a U.S. citizen, the following applies:',
        '',
        '   * The bond premium is fully earned and NON-REFUNDABLE',
        '   * Any collateral posted may be forfeited',
        '   * I may be liable for the full bond amount plus expenses',
        '   * Immigration bonds have additional requirements and conditions',
        '',
        'I have made this representation knowingly and voluntarily, and I understand',
        'the consequences if this representation is false.',
    ]


def waiver_text_spanish(indemnitor_name: str, defendant_name: str):
    return [
        f"Yo, {indemnitor_name}, el co-firmante/indemnizador abajo firmante, por la presente",
        f"declaro y garantizo que {defendant_name}, el acusado, ES CIUDADANO DE LOS",
        'ESTADOS UNIDOS.',
        '',
        'Entiendo que si el acusado NO es ciudadano estadounidense, se aplica lo siguiente:',
        '',
        '   * La prima del bono esta totalmente devengada y NO ES REEMBOLSABLE',
        '   * Cualquier garantia depositada puede ser confiscada',
    ]


def draw_immigration_waiver(layout: PageLayout, snapshot: IntakeSnapshot,
                            signatures: NormalizedSignatures, today: str) -> None:
    indemnitor_name = full_name(snapshot.indemnitor)
    defendant_name = full_name(snapshot.defendant)

    layout.title('IMMIGRATION WAIVER', _company_name(snapshot))
    layout.advance(10)

    layout.text('CITIZENSHIP WAIVER STATEMENT', size=12, bold=True)
    layout.advance(25)
    layout.paragraph(waiver_text_english(indemnitor_name, defendant_name))
    layout.advance(20)

    layout.signature_block(
        'Co-Signer Signature:', signatures.waiver, today,
        image_x=COL1 + 10, image_drop=45, max_width=180, max_height=40, date_x=320,
        printed_name=indemnitor_name,
    )
    layout.advance(40)
    layout.rule()
    layout.advance(30)

    layout.text('DECLARACION DE EXENCION DE CIUDADANIA (Spanish)', size=12, bold=True)
    layout.advance(25)
    layout.paragraph(waiver_text_spanish(indemnitor_name, defendant_name))


# =============================================================================
# REFERENCE FORM
# =============================================================================

def draw_reference_form(layout: PageLayout, snapshot: IntakeSnapshot,
                        signatures: NormalizedSignatures, today: str) -> None:
    indemnitor = snapshot.indemnitor

    layout.title('PERSONAL REFERENCE FORM', _company_name(snapshot))

    layout.section_header('APPLICANT INFORMATION')
    layout.field('Applicant Name', full_name(indemnitor))
    layout.advance(ROW)
    layout.field('Defendant Name', full_name(snapshot.defendant))
    layout.advance(ROW)
    layout.field('Bond Amount', format_currency(snapshot.bond.get('amount')))
    layout.advance(30)
    layout.rule()
    layout.advance(20)

    layout.section_header('PERSONAL REFERENCES')
    layout.text('The following persons can verify my identity and character:', size=9, color=LABEL_GREY)
    layout.advance(20)

    references = snapshot.provided_references()
    if references:
        for i, ref in enumerate(references):
            layout.band(f"Reference {i + 1}")
            layout.advance(20)
            _draw_reference(layout, ref, x=COL1 + 10)
            layout.advance(8)
    else:
        layout.text('No references provided', size=10, color=MUTED_GREY)
        layout.advance(20)

    layout.advance(10)
    layout.rule()
    layout.advance(20)

    layout.section_header('APPLICANT SIGNATURE')
    layout.text('I certify that the above references are accurate and may be contacted.', size=9, color=LABEL_GREY)
    layout.advance(25)
    layout.signature_block(
        'Signature:', signatures.applicant, today,
        image_x=COL1 + 60, image_drop=45, max_width=180, max_height=40, date_x=320,
        printed_name=full_name(indemnitor),
    )


# =============================================================================
# ENGINE
# =============================================================================

LAYOUTS: Dict[FormType, LayoutFunc] = {
    FormType.PRE_APPLICATION: draw_pre_application,
    FormType.INDEMNITOR_APPLICATION: draw_indemnitor_application,
    FormType.IMMIGRATION_BOND_AGREEMENT: draw_bond_agreement,
    FormType.IMMIGRATION_WAIVER: draw_immigration_waiver,
    FormType.REFERENCE_FORM: draw_reference_form,
}


class PdfLayoutEngine:
    """
    Renders one canonical document to PDF bytes.

    Output depends only on the snapshot, the normalized signatures and
    the date printed in the "Date:" fields.
    """

    def __init__(self, layouts: Optional[Dict[FormType, LayoutFunc]] = None):
        self.layouts = dict(LAYOUTS if layouts is None else layouts)

    def render(
        self,
        form_type,
        snapshot: IntakeSnapshot,
        signatures: NormalizedSignatures,
        today: Optional[date] = None
    ) -> bytes:
        """
        Render a document.

        Args:
            form_type: FormType or any key FormType.from_key accepts
            snapshot: Intake data
            signatures: Signatures normalized once for this batch
            today: Date printed in the "Date:" fields (default: date.today())

        Returns:
            PDF bytes

        Raises:
            UnknownFormTypeError: form_type matches no document
            RenderError: the layout failed
        """
        form_type = FormType.from_key(form_type)
        draw = self.layouts.get(form_type)
        if draw is None:
            raise RenderError(f"No PDF layout for {form_type.value}", form_type=form_type.value)

        config = get_form_config(form_type)
        layout = PageLayout(title=config.name, author=_company_name(snapshot))
        try:
            draw(layout, snapshot, signatures, format_date(today or date.today()))
            pdf = layout.finish()
            logger.debug(f"Rendered {config.name} PDF: {layout.page_count} page(s), {len(pdf)} bytes")
            return pdf
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"{config.name} layout failed: {e}", form_type=form_type.value) from e
