from __future__ import annotations

from .base import FragmentTransformer, read_fragment_bytes, read_fragment_text
from .css import CssTransformer, minify_css
from .image import ImageTransformer
from .js import JsTransformer
from .json_data import JsonTransformer
from .markup import HtmlTransformer, SvgTransformer, collapse_markup

__all__ = [
    "FragmentTransformer",
    "read_fragment_text",
    "read_fragment_bytes",
    "JsTransformer",
    "CssTransformer",
    "minify_css",
    "HtmlTransformer",
    "SvgTransformer",
    "collapse_markup",
    "JsonTransformer",
    "ImageTransformer",
]
