from __future__ import annotations

"""
Raster Image Fragment Transformer.

Encodes the image bytes as a base64 `data:` URI so the picture can be
referenced from inlined markup or styles without a separate request.
"""

import base64

from inlinebuild.core.processing.transformers.base import (
    FragmentTransformer,
    read_failure,
    read_fragment_bytes,
)
from inlinebuild.domain.build_models import TransformOutcome, transform_success


class ImageTransformer(FragmentTransformer):
    """
    Data URI encoder.

    Args:
        mime_type: MIME type written in the URI header, e.g. "image/jpeg".
    """

    def __init__(self, mime_type: str = "image/jpeg") -> None:
        self.mime_type = mime_type

    def transform(self, fragment_path: str) -> TransformOutcome:
        try:
            data = read_fragment_bytes(fragment_path)
        except OSError as e:
            return read_failure(fragment_path, e)

        encoded = base64.b64encode(data).decode("ascii")
        return transform_success(f"data:{self.mime_type};base64,{encoded}")
