"""FastAPI application for keypad calculator sessions.

    uvicorn app:app
"""

from __future__ import annotations

from functools import partial

from fastapi import FastAPI

from api import router, set_store
from calculator import Calculator
from contract import MAX_DISPLAY_LENGTH, MAX_EXPRESSION_PREVIEW_LENGTH
from store import SessionStore


def create_app(
    store: SessionStore | None = None,
    *,
    display_width: int = MAX_DISPLAY_LENGTH,
    preview_width: int = MAX_EXPRESSION_PREVIEW_LENGTH,
) -> FastAPI:
    """Wire a session store into the router.

    The widths only shape calculators of a store built here; an injected
    store keeps its own factory.
    """
    if store is None:
        store = SessionStore(
            factory=partial(
                Calculator,
                max_display_length=display_width,
                max_preview_length=preview_width,
            )
        )
    set_store(store)

    app = FastAPI(
        title="Keypad Calculator API",
        description=(
            "Calculator sessions driven one keypad key at a time. Each press "
            "returns the display value, the expression preview and the last "
            "evaluation error."
        ),
        version="0.1.0",
    )
    app.include_router(router)
    return app


app = create_app()
