"""Site builder configuration, rendering and draft lifecycle.

This package turns a site configuration (a theme plus an ordered list of
typed sections) into CSS custom properties and HTML, and manages the
draft/publish lifecycle of that configuration against a remote store.

Exports
-------
- ``app``: Cyclopts application behind the ``sb`` console script.
- ``main``: Convenience function that invokes the application.

Examples
--------
>>> from sb_sites import main
>>> main()  # doctest: +SKIP
>>> from sb_sites import app
>>> app.name[0]
'sb'
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
