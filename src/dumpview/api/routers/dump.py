"""
API route for one-off dumps.

Endpoints
---------
- `POST /dump`: describe a JSON value and return HTML, text and the wire form.
"""

from __future__ import annotations

from fastapi import APIRouter

from dumpview.api.schemas import DumpRequest, DumpResponse
from dumpview.core.describer import Describer
from dumpview.core.wire import snapshot_to_wire, to_wire
from dumpview.render.html import Renderer
from dumpview.render.text import render_text

router = APIRouter(tags=["Dump"])


@router.post("/dump", response_model=DumpResponse, summary="Dump a JSON value")
async def dump_value(request: DumpRequest) -> DumpResponse:
    """
    Describe ``request.value`` once and render it.

    Invalid option combinations surface as 400 through the app-level
    `ValueError` handler; out-of-range bounds are rejected with 422.
    """
    options = request.options.to_options()
    description = Describer(options).describe(request.value)
    return DumpResponse(
        html=Renderer(options).render_html(description),
        text=render_text(description, options),
        model=to_wire(description.value),
        snapshot=snapshot_to_wire(description.snapshot),
    )


__all__ = ["router"]
