"""Server bundle materialisation.

Writes the runtime wrapper selected at plan-build time next to the
framework's server build:

- ``build/server.mjs``   — framework import line + wrapper source
- ``build/polyfill.mjs`` — globals the server build expects, injected at
  the top of the bundle

This is the only step of plan compilation that writes to disk, and it runs
after validation, so an invalid plan never leaves files behind.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from ssrforge.models.plan import ServerBundle

logger = logging.getLogger(__name__)

WRAPPERS_DIR = Path(__file__).resolve().parent.parent / "wrappers"


def render_server_entry(bundle: ServerBundle, wrappers_dir: Path = WRAPPERS_DIR) -> str:
    wrapper_source = (wrappers_dir / bundle.wrapper.wrapper_file).read_text(encoding="utf-8")
    return "\n".join([
        "// Import the server build produced by the framework build",
        bundle.entry_import,
        "",
        wrapper_source,
    ])


def write_server_bundle(
    bundle: ServerBundle,
    output_path: Path,
    wrappers_dir: Path = WRAPPERS_DIR,
) -> Path:
    """Write the server entry and polyfill into ``<output_path>/<build_dir>``.

    Returns the path of the written ``server.mjs``.
    """
    build_path = Path(output_path) / bundle.build_dir
    build_path.mkdir(parents=True, exist_ok=True)

    entry = build_path / "server.mjs"
    entry.write_text(render_server_entry(bundle, wrappers_dir), encoding="utf-8")
    shutil.copyfile(wrappers_dir / "polyfill.mjs", build_path / "polyfill.mjs")

    logger.info(
        "Wrote %s server bundle to %s (handler=%s)",
        bundle.wrapper.value,
        entry,
        bundle.handler,
    )
    return entry
