"""
Source locations: where a dump was requested and where classes are declared.

Resolution is best-effort. Builtins, C extensions and code typed into a REPL
have no source file; every failure is logged at DEBUG and the location is
simply omitted.
"""

from __future__ import annotations

import inspect
import linecache
import re
import sys
import types
from urllib.parse import quote

from .model import CallSite, EditorLocation
from .settings import get_logger, load_settings

logger = get_logger(__name__)

_DUMP_CALL = re.compile(r"\w*(?:dump|to_html|to_text|to_terminal)\w*\(.*\)", re.IGNORECASE)


def editor_uri(file: str, line: int, template: str | None = None) -> str | None:
    """Return an editor URI for ``file:line`` or None when links are disabled.

    ``template`` defaults to ``DUMPVIEW_EDITOR`` and may use ``%file`` and
    ``%line`` placeholders.
    """
    template = load_settings().editor if template is None else template
    if not template:
        return None
    return template.replace("%file", quote(file)).replace("%line", str(line))


def resolve_declaration(value: object) -> EditorLocation | None:
    """Return where the class of ``value`` (or the function itself) is declared."""
    target: object = value
    if isinstance(value, types.MethodType):
        target = value.__func__
    elif not isinstance(value, type | types.FunctionType):
        target = type(value)

    try:
        file = inspect.getsourcefile(target)  # type: ignore[arg-type]
        if file is None:
            return None
        if isinstance(target, types.FunctionType):
            line = target.__code__.co_firstlineno
        else:
            line = inspect.getsourcelines(target)[1]  # type: ignore[arg-type]
    except (TypeError, OSError) as exc:
        logger.debug("No declaration site for %s: %s", type(value).__name__, exc)
        return None
    return EditorLocation(file=file, line=line, url=editor_uri(file, line))


def find_call_site(skip_prefix: str = "dumpview") -> CallSite | None:
    """Return the first frame outside the ``skip_prefix`` package.

    The code snippet is narrowed to the dump call on that line when possible.
    """
    frame = sys._getframe(1)
    while frame is not None:
        module = frame.f_globals.get("__name__", "")
        if module != skip_prefix and not module.startswith(skip_prefix + "."):
            break
        frame = frame.f_back  # type: ignore[assignment]
    if frame is None:
        return None

    file = frame.f_code.co_filename
    line = frame.f_lineno
    source = linecache.getline(file, line).strip()
    if not source:
        logger.debug("No source line for call site %s:%s", file, line)
    match = _DUMP_CALL.search(source)
    return CallSite(file=file, line=line, code=match.group(0) if match else source)


__all__ = ["editor_uri", "find_call_site", "resolve_declaration"]
