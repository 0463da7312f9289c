"""Build output models — what the loader derives from a framework build."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Routes served from storage when no real build is present (dev mode).
PLACEHOLDER_STATIC_ROUTES: list[str] = ["assets/*", "favicon.ico"]


class BuildMetadata(BaseModel):
    """Static-asset layout of a built application.

    ``static_routes`` enumerates the top-level entries of ``assets_path``:
    a directory becomes ``"<name>/*"``, a file becomes ``"<name>"``.
    Deeper files are covered by their directory's wildcard.
    """

    model_config = ConfigDict(frozen=True)

    assets_path: str
    assets_versioned_sub_dir: str | None = None
    static_routes: list[str] = Field(default_factory=list)
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls) -> BuildMetadata:
        """Stand-in metadata used in dev mode; never touches the disk."""
        return cls(
            assets_path="placeholder",
            assets_versioned_sub_dir=None,
            static_routes=list(PLACEHOLDER_STATIC_ROUTES),
            is_placeholder=True,
        )


class AssetOptions(BaseModel):
    """How static assets are uploaded to the storage origin."""

    model_config = ConfigDict(frozen=True)

    text_encoding: str = "utf-8"
    versioned_files_cache_header: str = "public,max-age=31536000,immutable"
    non_versioned_files_cache_header: str = (
        "public,max-age=0,s-maxage=86400,stale-while-revalidate=8640"
    )
