"""Remix build layouts.

With the Vite bundler, everything served from ``/`` lands in
``build/client`` and the server build is ``build/server/index.js``.  With
the classic Remix compiler, public files live in ``public`` (its ``build``
subfolder is content-hashed) and the server build is ``build/index.js``.
"""

from __future__ import annotations

from ssrforge.layouts.base import BuildLayout


class RemixViteLayout(BuildLayout):
    name = "remix-vite"
    assets_path = "build/client"
    assets_versioned_sub_dir = None
    server_entry = "server/index.js"


class RemixClassicLayout(BuildLayout):
    name = "remix-classic"
    assets_path = "public"
    assets_versioned_sub_dir = "build"
    server_entry = "index.js"
