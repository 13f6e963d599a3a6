import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    # Environment
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')

    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Company branding used when an intake's company record leaves it blank
    DEFAULT_COMPANY_NAME = os.getenv('DEFAULT_COMPANY_NAME', 'Bail Bonds Company')
    DEFAULT_BRAND_COLOR = os.getenv('DEFAULT_BRAND_COLOR', '#f7941d')

    # Generate the five PDFs when an intake is submitted
    FORMS_GENERATE_PDFS_ON_SUBMIT = os.getenv('FORMS_GENERATE_PDFS_ON_SUBMIT', 'True').lower() == 'true'


class TestConfig(Config):
    TESTING = True
    FLASK_ENV = 'testing'
    SECRET_KEY = 'test-secret-key'
    LOG_LEVEL = 'DEBUG'
    FORMS_GENERATE_PDFS_ON_SUBMIT = True
