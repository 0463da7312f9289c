"""Build layout capability interface.

A ``BuildLayout`` knows where one framework family puts its static assets
and its server build.  Layouts are chosen by configuration, never by
probing the build directory, so the loader's only disk access is the
one-level listing of the assets directory.
"""

from __future__ import annotations

import abc
import logging
from pathlib import Path
from typing import ClassVar

from ssrforge.core.errors import SsrForgeError
from ssrforge.models.build import BuildMetadata

logger = logging.getLogger(__name__)


class BuildOutputMissing(SsrForgeError):
    """Raised when the expected build artifacts are absent."""

    def __init__(self, layout: str, expected: Path) -> None:
        self.layout = layout
        self.expected = expected
        super().__init__(
            f"Build output missing for layout {layout!r}: "
            f"expected directory {expected} does not exist. "
            "Run the framework build before deploying."
        )


class BuildLayout(abc.ABC):
    """Where a framework family places its build output.

    Subclasses **must** set:
        * ``name``          — configuration key (e.g. ``"remix-vite"``).
        * ``assets_path``   — assets directory, relative to the output dir.
        * ``server_entry``  — server build module, relative to ``build/``.

    Subclasses **may** set ``assets_versioned_sub_dir`` when part of the
    assets directory holds content-hashed, immutable files.
    """

    name: ClassVar[str]
    assets_path: ClassVar[str]
    assets_versioned_sub_dir: ClassVar[str | None] = None
    server_entry: ClassVar[str]

    @property
    def entry_import(self) -> str:
        """Import statement the server wrapper prepends to itself."""
        return f'import * as serverBuild from "./{self.server_entry}";'

    def load(self, output_path: Path) -> BuildMetadata:
        """Classify the build output into a ``BuildMetadata``.

        Raises ``BuildOutputMissing`` if the assets directory is absent.
        """
        assets_dir = Path(output_path) / self.assets_path
        if not assets_dir.is_dir():
            raise BuildOutputMissing(self.name, assets_dir)

        routes = self.static_routes(assets_dir)
        logger.info(
            "Loaded %s build output from %s — %d top-level static routes",
            self.name,
            assets_dir,
            len(routes),
        )
        return BuildMetadata(
            assets_path=self.assets_path,
            assets_versioned_sub_dir=self.assets_versioned_sub_dir,
            static_routes=routes,
        )

    @staticmethod
    def static_routes(assets_dir: Path) -> list[str]:
        """One route per immediate child: ``"<dir>/*"`` or ``"<file>"``.

        Exact-match files come before directory wildcards, each group
        sorted by name, so identical builds yield identical plans
        regardless of directory listing order.
        """
        children = list(assets_dir.iterdir())
        files = sorted(c.name for c in children if not c.is_dir())
        dirs = sorted(c.name for c in children if c.is_dir())
        return files + [f"{name}/*" for name in dirs]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
