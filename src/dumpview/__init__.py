"""dumpview: bounded, cycle-safe value dumps rendered as lazily expandable trees.

The public surface is re-exported here; see :mod:`dumpview.dumper` for the
facade and :mod:`dumpview.core.contracts.options` for every knob.
"""

from __future__ import annotations

from dumpview.core.contracts.options import DumpOptions, LazyMode, LocationFlag
from dumpview.core.describer import Describer, describe
from dumpview.core.errors import DumpviewError, UnknownIdentityError, UnsupportedValueError
from dumpview.dumper import Dumper, DumpSession, dump, to_html, to_terminal, to_text

__all__ = [
    "Describer",
    "DumpOptions",
    "DumpSession",
    "Dumper",
    "DumpviewError",
    "LazyMode",
    "LocationFlag",
    "UnknownIdentityError",
    "UnsupportedValueError",
    "__version__",
    "describe",
    "dump",
    "to_html",
    "to_terminal",
    "to_text",
]
__version__ = "0.3.0"
