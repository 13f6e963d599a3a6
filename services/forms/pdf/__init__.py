"""
PDF backend: cursor-based page layout and the five document layouts.
"""

from .documents import LAYOUTS, PdfLayoutEngine
from .layout import PageLayout, decode_image

__all__ = ['LAYOUTS', 'PageLayout', 'PdfLayoutEngine', 'decode_image']
