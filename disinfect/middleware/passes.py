"""The built-in disinfection passes and the default pipeline."""

from __future__ import annotations

from typing import Any

from disinfect.config.options import DisinfectOptions
from disinfect.middleware.pipeline import DisinfectionPipeline, Pass, Surface
from disinfect.utils.sanitize import is_empty, is_whitespace_only, sanitize_html


class HtmlSanitizePass(Pass):
    """Strip unsafe markup from every string value. Opt-in per surface."""

    def enabled(self, options: DisinfectOptions, surface: Surface) -> bool:
        return surface.html_enabled(options)

    def apply(self, mapping: dict[str, Any], options: DisinfectOptions, surface: Surface) -> dict[str, Any]:
        return {
            key: sanitize_html(value) if isinstance(value, str) else value
            for key, value in mapping.items()
        }


class GenericSanitizerPass(Pass):
    """Hand the whole mapping to ``generic_sanitizer``."""

    def apply(self, mapping: dict[str, Any], options: DisinfectOptions, surface: Surface) -> dict[str, Any]:
        return options.generic_sanitizer(mapping)


class SurfaceSanitizerPass(Pass):
    """Hand the whole mapping to the surface's own sanitizer.

    Runs after the generic sanitizer, so it sees already-cleansed values.
    """

    def apply(self, mapping: dict[str, Any], options: DisinfectOptions, surface: Surface) -> dict[str, Any]:
        return surface.sanitizer(options)(mapping)


class RemoveWhitespacePass(Pass):
    """Drop keys whose value is made only of whitespace."""

    def enabled(self, options: DisinfectOptions, surface: Surface) -> bool:
        return options.remove_whitespace

    def apply(self, mapping: dict[str, Any], options: DisinfectOptions, surface: Surface) -> dict[str, Any]:
        return {key: value for key, value in mapping.items() if not is_whitespace_only(value)}


class RemoveEmptyPass(Pass):
    """Drop keys whose value is ``""`` or ``None``."""

    def enabled(self, options: DisinfectOptions, surface: Surface) -> bool:
        return options.remove_empty

    def apply(self, mapping: dict[str, Any], options: DisinfectOptions, surface: Surface) -> dict[str, Any]:
        return {key: value for key, value in mapping.items() if not is_empty(value)}


def build_pipeline() -> DisinfectionPipeline:
    """Build the ordered default pipeline.

    Whitespace removal runs before empty removal; both test the stored value
    as-is, nothing is trimmed.
    """
    pipeline = DisinfectionPipeline()
    pipeline.add(HtmlSanitizePass())       # 0: opt-in per surface
    pipeline.add(GenericSanitizerPass())   # 1
    pipeline.add(SurfaceSanitizerPass())   # 2
    pipeline.add(RemoveWhitespacePass())   # 3: opt-in
    pipeline.add(RemoveEmptyPass())        # 4: opt-in
    return pipeline


_pipeline: DisinfectionPipeline | None = None


def get_pipeline() -> DisinfectionPipeline:
    """Get or create the shared default pipeline. Passes hold no state."""
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline()
    return _pipeline


def disinfect(
    mapping: dict[str, Any] | None,
    options: DisinfectOptions,
    surface: Surface,
) -> dict[str, Any] | None:
    """Run the default pipeline over one surface's mapping."""
    return get_pipeline().run(mapping, options, surface)
