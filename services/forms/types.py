"""
Form System Type Definitions

Dataclasses for the data that flows through one render pass: the intake
snapshot, parsed signature submissions, the normalized signature record
and the two kinds of template source. All of them are immutable once built.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .exceptions import UnknownFormTypeError


class FormType(Enum):
    """The five canonical documents, valued by their stable identifier."""
    PRE_APPLICATION = "preApplication"
    REFERENCE_FORM = "referenceForm"
    IMMIGRATION_WAIVER = "immigrationWaiver"
    INDEMNITOR_APPLICATION = "indemnitorApplication"
    IMMIGRATION_BOND_AGREEMENT = "immigrationBondAgreement"

    @property
    def slug(self) -> str:
        """Kebab-case identifier used in preview URLs (e.g. 'pre-application')."""
        return _SLUGS[self]

    @property
    def pdf_key(self) -> str:
        """Key used for this document in the stored binary artifact map."""
        return _PDF_KEYS.get(self, self.value)

    @classmethod
    def from_key(cls, key: str) -> 'FormType':
        """
        Resolve any naming scheme to a FormType.

        Accepts the canonical id, the kebab slug and the legacy binary key:
            'indemnitorApplication', 'indemnitor-application', 'indemnitorApp'
        """
        if isinstance(key, cls):
            return key
        form_type = _KEY_LOOKUP.get(str(key or '').strip())
        if form_type is None:
            raise UnknownFormTypeError(f"Unknown form type: {key}", form_type=key)
        return form_type


_SLUGS = {
    FormType.PRE_APPLICATION: 'pre-application',
    FormType.REFERENCE_FORM: 'reference-form',
    FormType.IMMIGRATION_WAIVER: 'immigration-waiver',
    FormType.INDEMNITOR_APPLICATION: 'indemnitor-application',
    FormType.IMMIGRATION_BOND_AGREEMENT: 'immigration-bond-agreement',
}

# Binary artifacts for these two documents were persisted under shorter keys
_PDF_KEYS = {
    FormType.INDEMNITOR_APPLICATION: 'indemnitorApp',
    FormType.IMMIGRATION_BOND_AGREEMENT: 'bondAgreement',
}

_KEY_LOOKUP: Dict[str, FormType] = {}
for _form_type in FormType:
    _KEY_LOOKUP[_form_type.value] = _form_type
    _KEY_LOOKUP[_SLUGS[_form_type]] = _form_type
    _KEY_LOOKUP[_form_type.pdf_key] = _form_type


class SignatureRole(Enum):
    """Canonical signature purposes every document addresses by name."""
    INDEMNITOR = "indemnitor"
    DEFENDANT = "defendant"
    WAIVER = "waiver"
    APPLICANT = "applicant"


# =============================================================================
# SNAPSHOT
# =============================================================================

DEFAULT_COMPANY = {
    'name': 'Bail Bonds Company',
    'primaryColor': '#f7941d',
}


def _frozen(value: Any) -> Mapping[str, Any]:
    """Read-only copy of a mapping; anything else becomes an empty mapping."""
    if isinstance(value, Mapping):
        return MappingProxyType(dict(value))
    return MappingProxyType({})


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


@dataclass(frozen=True)
class IntakeSnapshot:
    """
    Read-only view of one application used for one render pass.

    Upstream validation does not guarantee completeness for draft saves,
    so every accessor defaults instead of raising.
    """
    defendant: Mapping[str, Any] = field(default_factory=lambda: _frozen({}))
    indemnitor: Mapping[str, Any] = field(default_factory=lambda: _frozen({}))
    references: Tuple[Mapping[str, Any], ...] = ()
    bond: Mapping[str, Any] = field(default_factory=lambda: _frozen({}))
    company: Mapping[str, Any] = field(default_factory=lambda: _frozen(DEFAULT_COMPANY))
    company_id: Optional[str] = None

    MAX_REFERENCES = 5

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        company_defaults: Optional[Mapping[str, Any]] = None
    ) -> 'IntakeSnapshot':
        """
        Build a snapshot from a plain record.

        Accepts both the short names ('defendant') and the store column
        names ('defendantData'). Company fields that are missing or empty
        are filled from company_defaults.
        """
        data = data if isinstance(data, Mapping) else {}

        references = _pick(data, 'references', 'referencesData') or []
        if not isinstance(references, (list, tuple)):
            references = []

        company = dict(DEFAULT_COMPANY)
        company.update(company_defaults or {})
        raw_company = _pick(data, 'company')
        if isinstance(raw_company, Mapping):
            company.update({k: v for k, v in raw_company.items() if v not in (None, '')})

        company_id = _pick(data, 'company_id', 'companyId')
        if company_id is None and isinstance(raw_company, Mapping):
            company_id = raw_company.get('id')

        return cls(
            defendant=_frozen(_pick(data, 'defendant', 'defendantData')),
            indemnitor=_frozen(_pick(data, 'indemnitor', 'indemnitorData')),
            references=tuple(_frozen(ref) for ref in references),
            bond=_frozen(_pick(data, 'bond', 'bondData')),
            company=_frozen(company),
            company_id=str(company_id) if company_id is not None else None,
        )

    def entity(self, name: str) -> Mapping[str, Any]:
        """Get an entity mapping by name; unknown names give an empty mapping."""
        if name in ('defendant', 'indemnitor', 'bond', 'company'):
            return getattr(self, name)
        return _frozen({})

    def reference(self, index: int) -> Mapping[str, Any]:
        """Get the reference at index, or an empty mapping for an empty slot."""
        if 0 <= index < len(self.references):
            return self.references[index]
        return _frozen({})

    def reference_slots(self, count: int = MAX_REFERENCES) -> Tuple[Mapping[str, Any], ...]:
        """Exactly count references, padded with empty mappings."""
        return tuple(self.reference(i) for i in range(count))

    def provided_references(self) -> Tuple[Mapping[str, Any], ...]:
        """The references actually entered, at most MAX_REFERENCES of them."""
        return tuple(ref for ref in self.references[:self.MAX_REFERENCES] if any(ref.values()))

    def case_value(self, *keys: str) -> Any:
        """
        First non-empty case detail among keys, looked up on the bond and
        then on the defendant, where older intakes stored charges and
        court facts.
        """
        for source in (self.bond, self.defendant):
            for key in keys:
                value = source.get(key)
                if value not in (None, ''):
                    return value
        return None


# =============================================================================
# SIGNATURES
# =============================================================================

@dataclass(frozen=True)
class FormSignature:
    """A signature captured on a specific form, keyed '<formType>_<signer>'."""
    form_type: FormType
    signer: str
    image: Optional[str]

    @property
    def key(self) -> str:
        return f"{self.form_type.value}_{self.signer}"


@dataclass(frozen=True)
class LegacySignature:
    """A signature from the original flat scheme ('indemnitor', 'waiver', ...)."""
    key: str
    image: Optional[str]


SignatureSubmission = Union[FormSignature, LegacySignature]


@dataclass(frozen=True)
class NormalizedSignatures:
    """
    Signature images resolved to canonical roles.

    Built once per render pass by normalize_signatures(); None means
    the role is unsigned.
    """
    indemnitor: Optional[str] = None
    defendant: Optional[str] = None
    waiver: Optional[str] = None
    applicant: Optional[str] = None

    def get(self, role: Union[str, SignatureRole]) -> Optional[str]:
        """Get the image for a role by name; unknown roles are unsigned."""
        name = role.value if isinstance(role, SignatureRole) else str(role)
        if name not in _ROLE_NAMES:
            return None
        return getattr(self, name)


_ROLE_NAMES = tuple(role.value for role in SignatureRole)


# =============================================================================
# TEMPLATE SOURCES
# =============================================================================

@dataclass(frozen=True)
class BuiltInTemplate:
    """The default, non-editable layout for a form type."""
    form_type: FormType

    @property
    def is_override(self) -> bool:
        return False


@dataclass(frozen=True)
class OverrideTemplate:
    """A tenant-supplied HTML template that replaces the built-in wholesale."""
    form_type: FormType
    source: str

    @property
    def is_override(self) -> bool:
        return True


TemplateSource = Union[BuiltInTemplate, OverrideTemplate]


@dataclass(frozen=True)
class CompanyTemplates:
    """
    Template source for each of the five form types for one company.

    This is the unit held by the template cache. A render call resolves it
    once and never consults the cache again mid-render.
    """
    company_id: Optional[str]
    sources: Mapping[FormType, TemplateSource]

    @classmethod
    def built_in(cls, company_id: Optional[str] = None) -> 'CompanyTemplates':
        """All five form types on their built-in templates."""
        return cls(
            company_id=company_id,
            sources=MappingProxyType({ft: BuiltInTemplate(ft) for ft in FormType}),
        )

    def source_for(self, form_type: FormType) -> TemplateSource:
        return self.sources.get(form_type) or BuiltInTemplate(form_type)

    def override_for(self, form_type: FormType) -> Optional[str]:
        """Override HTML for a form type, or None when it uses the built-in."""
        source = self.source_for(form_type)
        return source.source if isinstance(source, OverrideTemplate) else None

    @property
    def has_overrides(self) -> bool:
        return any(isinstance(s, OverrideTemplate) for s in self.sources.values())
