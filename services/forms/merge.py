"""
Markup Merge

Combines rendered documents into one printable HTML page: a screen-only
header with the company color and a print button, followed by each
document's body in display order. Visiting the page with ?print=true
opens the print dialog.
"""

import logging
import re
from typing import List, Mapping, Optional

from jinja2 import Environment
from markupsafe import Markup

from .html_forms import brand_color, create_environment
from .registry import get_sorted_forms
from .types import FormType, IntakeSnapshot

logger = logging.getLogger(__name__)

BODY_PATTERN = re.compile(r'<body[^>]*>(.*?)</body>', re.IGNORECASE | re.DOTALL)
STYLE_PATTERN = re.compile(r'<style[^>]*>(.*?)</style>', re.IGNORECASE | re.DOTALL)

PRINT_TEMPLATE = 'print_all.html'

_env: Optional[Environment] = None


def _environment() -> Environment:
    global _env
    if _env is None:
        _env = create_environment()
    return _env


def extract_body(html: str) -> str:
    """Inner HTML of the <body> element, or the whole string when there is none."""
    if not html:
        return ''
    match = BODY_PATTERN.search(html)
    return match.group(1) if match else html


def extract_styles(html: str) -> List[str]:
    """Contents of every <style> element in a document."""
    if not html:
        return []
    return [style.strip() for style in STYLE_PATTERN.findall(html) if style.strip()]


def merge_documents(documents: Mapping[str, str], snapshot: IntakeSnapshot) -> str:
    """
    Merge rendered documents into one printable page.

    Args:
        documents: {form key: html}; keys may use any form naming scheme
        snapshot: Intake the documents were rendered from (header text, color)

    Returns:
        Complete HTML page
    """
    by_type = {}
    for key, html in documents.items():
        by_type[FormType.from_key(key)] = html

    bodies = []
    styles = []
    for config in get_sorted_forms():
        html = by_type.get(config.form_type)
        if html is None:
            continue
        bodies.append(Markup(extract_body(html)))
        for style in extract_styles(html):
            if style not in styles:
                styles.append(style)

    logger.debug(f"Merging {len(bodies)} documents for print")
    return _environment().get_template(PRINT_TEMPLATE).render(
        bodies=bodies,
        styles=[Markup(style) for style in styles],
        defendant=snapshot.defendant,
        company=snapshot.company,
        brand_color=brand_color(snapshot.company),
    )
