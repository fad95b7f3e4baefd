from __future__ import annotations

"""
Fragment Transformer Registry.

Acts as the central authority mapping a fragment type tag (the placeholder's
`<type>` segment, which is also the fragment file extension) to the function
that turns the fragment file into inlinable text. Transformers return a
`TransformOutcome`; a transformer that raises is converted into a failure
here so a single broken fragment can never take down a build worker.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Union

from inlinebuild.core.processing.transformers import (
    CssTransformer,
    HtmlTransformer,
    ImageTransformer,
    JsonTransformer,
    JsTransformer,
    SvgTransformer,
)
from inlinebuild.domain.build_models import (
    TransformOutcome,
    transform_failure,
    transform_success,
)

logger = logging.getLogger(__name__)

Transformer = Callable[[str], Union[TransformOutcome, str]]


class TransformerRegistry:
    """
    Thread-safe type tag -> transformer mapping.

    Type tags are matched case-insensitively.
    """

    def __init__(self) -> None:
        self._transformers: Dict[str, Transformer] = {}
        self._lock = threading.Lock()

    def register(self, type_tag: str, transformer: Transformer) -> None:
        """
        Bind `transformer` to `type_tag`, replacing any previous binding.

        Args:
            type_tag: Fragment type, e.g. "css".
            transformer: Callable receiving the fragment path.

        Raises:
            ValueError: If the tag is empty or the transformer is not callable.
        """
        tag = (type_tag or "").strip().lower()
        if not tag:
            raise ValueError("Transformer type tag must not be empty.")
        if not callable(transformer):
            raise ValueError(f"Transformer for '{tag}' is not callable.")

        with self._lock:
            if tag in self._transformers:
                logger.debug(f"Registry: Replacing transformer for '{tag}'")
            self._transformers[tag] = transformer

    def unregister(self, type_tag: str) -> bool:
        with self._lock:
            return self._transformers.pop(type_tag.lower(), None) is not None

    def get(self, type_tag: str) -> Optional[Transformer]:
        with self._lock:
            return self._transformers.get(type_tag.lower())

    def has(self, type_tag: str) -> bool:
        with self._lock:
            return type_tag.lower() in self._transformers

    def __contains__(self, type_tag: object) -> bool:
        return isinstance(type_tag, str) and self.has(type_tag)

    def types(self) -> List[str]:
        with self._lock:
            return sorted(self._transformers)

    def transform(self, type_tag: str, fragment_path: str) -> TransformOutcome:
        """
        Run the transformer registered for `type_tag` on `fragment_path`.

        A plain string returned by a transformer is accepted as success.

        Returns:
            TransformOutcome: Content on success, reason on failure. Never raises
                              for transformer errors.
        """
        transformer = self.get(type_tag)
        if transformer is None:
            return transform_failure(f"No transformer registered for type '{type_tag}'")

        try:
            outcome = transformer(fragment_path)
        except Exception as e:
            logger.error(f"Registry: Transformer '{type_tag}' raised on {fragment_path}: {e}")
            return transform_failure(f"{type(e).__name__}: {e}")

        if isinstance(outcome, TransformOutcome):
            return outcome
        if isinstance(outcome, str):
            return transform_success(outcome)

        return transform_failure(
            f"Transformer '{type_tag}' returned {type(outcome).__name__}, expected TransformOutcome"
        )


# -----------------------------------------------------------------------------
# DEFAULT WIRING
# -----------------------------------------------------------------------------

def build_default_registry(config: Optional[Dict[str, Any]] = None) -> TransformerRegistry:
    """
    Create a registry populated with the built-in transformers.

    Args:
        config: Validated configuration; only the per-type transformer options
                are read. Defaults apply for missing keys.

    Returns:
        TransformerRegistry: Registry serving js, css, html, svg, json and
                             common raster image types.
    """
    cfg = config or {}
    registry = TransformerRegistry()

    registry.register("js", JsTransformer(
        debug_comments=bool(cfg.get("js_debug_comments", False)),
        separators=bool(cfg.get("js_separators", False)),
    ))
    registry.register("css", CssTransformer(minify=bool(cfg.get("css_minify", True))))
    registry.register("html", HtmlTransformer(
        minify=bool(cfg.get("html_minify", True)),
        remove_comments=bool(cfg.get("html_remove_comments", True)),
    ))
    registry.register("svg", SvgTransformer(
        remove_metadata=bool(cfg.get("svg_remove_metadata", True)),
    ))
    registry.register("json", JsonTransformer(pretty=bool(cfg.get("json_pretty_print", False))))

    jpg_mime = cfg.get("jpg_mime_type") or "image/jpeg"
    registry.register("jpg", ImageTransformer(jpg_mime))
    registry.register("jpeg", ImageTransformer(jpg_mime))
    registry.register("png", ImageTransformer("image/png"))
    registry.register("gif", ImageTransformer("image/gif"))

    logger.debug(f"Registry: Default transformers registered: {registry.types()}")
    return registry
