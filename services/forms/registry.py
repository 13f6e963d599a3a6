# services/forms/registry.py
"""
Form Registry - Centralized configuration for the five canonical documents.

Each entry ties a form type to:
- Display name (UI, download filenames)
- Built-in HTML template (relative to services/forms/templates/)
- The signature submission key the wizard collects for it
- Display order in the print-all view

TO ADD A NEW DOCUMENT:
1. Add a member to FormType in types.py
2. Create the built-in template in services/forms/templates/
3. Add a PDF layout in services/forms/pdf/documents.py
4. Add an entry to FORM_REGISTRY below
"""

from dataclasses import dataclass
from typing import Dict, List

from .types import FormType


@dataclass(frozen=True)
class FormConfig:
    """Configuration for one canonical document."""

    form_type: FormType
    name: str                # Display name for UI and download filenames
    html_template: str       # Built-in Jinja template filename
    signature_key: str       # Submission key the wizard stores the signature under
    sort_order: int          # Order in the print-all view (lower = first)

    @property
    def slug(self) -> str:
        return self.form_type.slug

    @property
    def pdf_key(self) -> str:
        return self.form_type.pdf_key

    @property
    def download_name(self) -> str:
        """Display name with spaces replaced, for attachment filenames."""
        return self.name.replace(' ', '_')


# =============================================================================
# FORM REGISTRY
# =============================================================================

FORM_REGISTRY: Dict[FormType, FormConfig] = {
    FormType.PRE_APPLICATION: FormConfig(
        form_type=FormType.PRE_APPLICATION,
        name='Pre-Application',
        html_template='pre_application.html',
        signature_key='preApplication_coSigner',
        sort_order=1,
    ),
    FormType.REFERENCE_FORM: FormConfig(
        form_type=FormType.REFERENCE_FORM,
        name='Reference Form',
        html_template='reference_form.html',
        signature_key='referenceForm_applicant',
        sort_order=2,
    ),
    FormType.IMMIGRATION_WAIVER: FormConfig(
        form_type=FormType.IMMIGRATION_WAIVER,
        name='Immigration Waiver',
        html_template='immigration_waiver.html',
        signature_key='immigrationWaiver_coSigner',
        sort_order=3,
    ),
    FormType.INDEMNITOR_APPLICATION: FormConfig(
        form_type=FormType.INDEMNITOR_APPLICATION,
        name='Indemnitor Application',
        html_template='indemnitor_application.html',
        signature_key='indemnitorApplication_indemnitor',
        sort_order=4,
    ),
    FormType.IMMIGRATION_BOND_AGREEMENT: FormConfig(
        form_type=FormType.IMMIGRATION_BOND_AGREEMENT,
        name='Immigration Bond Agreement',
        html_template='immigration_bond_agreement.html',
        signature_key='immigrationBondAgreement_indemnitor',
        sort_order=5,
    ),
}

# Order the binary batch is generated and stored in
PDF_ORDER = (
    FormType.PRE_APPLICATION,
    FormType.INDEMNITOR_APPLICATION,
    FormType.IMMIGRATION_BOND_AGREEMENT,
    FormType.IMMIGRATION_WAIVER,
    FormType.REFERENCE_FORM,
)


def get_form_config(key) -> FormConfig:
    """Get the config for a form under any naming scheme. Raises UnknownFormTypeError."""
    return FORM_REGISTRY[FormType.from_key(key)]


def get_sorted_forms() -> List[FormConfig]:
    """All forms in print-all display order."""
    return sorted(FORM_REGISTRY.values(), key=lambda c: c.sort_order)


def required_signature_keys() -> List[str]:
    """The one signature submission key collected per form, in display order."""
    return [config.signature_key for config in get_sorted_forms()]
