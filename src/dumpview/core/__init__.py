"""Core package: settings, Model types, identity tracking and the describer.

Downstream code imports the concrete modules, e.g.
    from dumpview.core.describer import Describer
    from dumpview.core.settings import load_settings, get_logger
"""

from __future__ import annotations

__all__ = ["__doc__"]
