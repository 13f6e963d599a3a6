"""
Form System Exceptions

Custom exceptions for form rendering. Missing fields and malformed
signatures are never errors; they degrade to blanks inside the renderers.
"""


class FormError(Exception):
    """Base exception for all form system errors."""
    pass


class UnknownFormTypeError(FormError):
    """
    Raised when a form type key matches none of the five canonical
    documents under any naming scheme.
    """
    def __init__(self, message: str, form_type: str = None):
        self.form_type = form_type
        super().__init__(message)


class TemplateLoadError(FormError):
    """
    Raised when the template store cannot return a company's templates.

    The template cache catches this and falls back to built-in templates
    for the current call without caching the result.
    """
    def __init__(self, message: str, company_id: str = None):
        self.company_id = company_id
        super().__init__(message)


class RenderError(FormError):
    """
    Raised when a single PDF layout fails.

    Wraps the underlying error with the form type that failed.
    """
    def __init__(self, message: str, form_type: str = None):
        self.form_type = form_type
        super().__init__(message)
