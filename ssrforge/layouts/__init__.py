"""Build layouts — registry mapping configuration names to layout classes.

Usage::

    from ssrforge.layouts import get_layout, load_build_metadata

    layout = get_layout("remix-classic")
    metadata = layout.load(Path("my-app"))

    # Or pick by bundler flag:
    metadata = load_build_metadata(Path("my-app"), uses_vite=True)
"""

from __future__ import annotations

import logging
from pathlib import Path

from ssrforge.layouts.base import BuildLayout, BuildOutputMissing
from ssrforge.layouts.remix import RemixClassicLayout, RemixViteLayout
from ssrforge.models.build import BuildMetadata

logger = logging.getLogger(__name__)

LAYOUT_REGISTRY: dict[str, type[BuildLayout]] = {
    RemixViteLayout.name: RemixViteLayout,
    RemixClassicLayout.name: RemixClassicLayout,
}


def get_layout(name: str) -> BuildLayout:
    """Instantiate the layout registered under *name*.

    Raises ``KeyError`` listing the known layouts if *name* is unknown.
    """
    try:
        return LAYOUT_REGISTRY[name]()
    except KeyError:
        known = ", ".join(sorted(LAYOUT_REGISTRY))
        raise KeyError(f"Unknown build layout {name!r}. Known layouts: {known}") from None


def layout_for_bundler(uses_vite: bool) -> BuildLayout:
    return RemixViteLayout() if uses_vite else RemixClassicLayout()


def load_build_metadata(
    output_path: Path,
    uses_vite: bool = True,
    *,
    layout: BuildLayout | None = None,
    placeholder: bool = False,
) -> BuildMetadata:
    """Return the build metadata for *output_path*.

    *layout* takes precedence over *uses_vite*.  In placeholder (dev)
    mode the fixed placeholder metadata is returned and the filesystem is
    not touched.
    """
    if placeholder:
        logger.info("Dev mode: using placeholder build metadata")
        return BuildMetadata.placeholder()
    return (layout or layout_for_bundler(uses_vite)).load(output_path)


__all__ = [
    "LAYOUT_REGISTRY",
    "BuildLayout",
    "BuildOutputMissing",
    "RemixClassicLayout",
    "RemixViteLayout",
    "get_layout",
    "layout_for_bundler",
    "load_build_metadata",
]
