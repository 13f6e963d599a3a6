"""
Shared fixtures for the form generation tests.

Run with: python -m pytest tests -v
"""

import base64
import io
import sys
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from services.forms import IntakeSnapshot
from services.intake_service import InMemoryIntakeStore


def make_signature(width=300, height=100, stroke=(0, 0, 0)):
    """PNG data URI of a simple pen stroke."""
    image = Image.new('RGB', (width, height), 'white')
    draw = ImageDraw.Draw(image)
    draw.line([(10, height // 2), (width // 2, 10), (width - 10, height - 10)], fill=stroke, width=3)
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return 'data:image/png;base64,' + base64.b64encode(buffer.getvalue()).decode('ascii')


@pytest.fixture
def signature_image():
    return make_signature()


@pytest.fixture
def other_signature_image():
    return make_signature(width=200, height=80, stroke=(0, 0, 128))


@pytest.fixture
def intake_data():
    """A complete intake record using the store column names."""
    return {
        'id': 'intake-1',
        'companyId': 'co-1',
        'status': 'IN_PROGRESS',
        'company': {
            'id': 'co-1',
            'name': 'Lone Star Bail Bonds',
            'primaryColor': '#1a5276',
            'phone': '7135550000',
            'address': '500 Travis St',
            'city': 'Houston',
            'state': 'TX',
            'zip': '77002',
        },
        'defendantData': {
            'firstName': 'John',
            'middleName': 'Q',
            'lastName': 'Doe',
            'dob': '1990-05-01',
            'ssn': '123-45-6789',
            'homePhone': '7135551234',
            'address': '100 Main St',
            'city': 'Houston',
            'state': 'TX',
            'zip': '77002',
            'alienNumber': 'A123456789',
            'jailLocation': 'Harris County Jail',
            'bookingNumber': 'B-42',
        },
        'indemnitorData': {
            'firstName': 'Jane',
            'lastName': 'Doe',
            'dob': '1988-02-14',
            'ssn': '987654321',
            'cellPhone': '7137254459',
            'email': 'jane@example.com',
            'relationshipToDefendant': 'Sister',
            'address': '200 Elm St',
            'city': 'Houston',
            'state': 'TX',
            'zip': '77003',
            'employer': 'Acme Corp',
        },
        'referencesData': [
            {'name': 'Alice Smith', 'relationship': 'Friend', 'phone': '7135550101'},
            {'name': 'Bob Jones', 'relationship': 'Coworker', 'phone': '7135550102'},
        ],
        'bondData': {
            'amount': 15000,
            'premium': 1500,
            'powerNumber': 'P-1001',
            'charges': 'Possession',
            'caseNumber': 'CR-2026-001',
            'courtName': '177th District Court',
            'courtDate': '2026-03-20',
        },
    }


@pytest.fixture
def snapshot(intake_data):
    return IntakeSnapshot.from_dict(intake_data)


@pytest.fixture
def signature_bag(signature_image, other_signature_image):
    return {
        'preApplication_coSigner': signature_image,
        'preApplication_defendant': other_signature_image,
        'referenceForm_applicant': signature_image,
        'immigrationWaiver_coSigner': signature_image,
        'indemnitorApplication_indemnitor': signature_image,
        'immigrationBondAgreement_indemnitor': signature_image,
    }


@pytest.fixture
def store(intake_data):
    return InMemoryIntakeStore(intakes={'intake-1': intake_data})


@pytest.fixture
def flask_app(store):
    from app import create_app
    return create_app('config.TestConfig', intake_store=store)


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()
