# chefbot/main.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .config import Settings, settings as default_settings
from .db import engine as default_engine, get_db, init_db
from .logging_config import setup_logging
from .ordering.brain import CatalogProvider, OrderingEngine
from .ordering.domain import ActionResult
from .ordering.menu_store import JsonMenuCatalog
from .ordering.session_store import SessionStore
from .persistence import SqlOrderPersistence
from .reply import ReplyGenerator

logger = logging.getLogger(__name__)


# -------------------
# Schemas
# -------------------
class ChatIn(BaseModel):
    message: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None


# -------------------
# Helpers
# -------------------
def get_engine(request: Request) -> OrderingEngine:
    return request.app.state.engine


def get_reply_generator(request: Request) -> ReplyGenerator:
    return request.app.state.reply_generator


def _result_json(r: ActionResult) -> Dict[str, Any]:
    return {
        "type": r.action.type.value,
        "ok": r.ok,
        "order_id": r.order_id,
        "error": str(r.error) if r.error else None,
    }


async def _sweep_loop(store: SessionStore, interval: int) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            store.sweep()
        except Exception:
            logger.exception("Session sweep failed")


# -------------------
# App
# -------------------
def create_app(
    settings: Optional[Settings] = None,
    catalog: Optional[CatalogProvider] = None,
    store: Optional[SessionStore] = None,
    db_engine: Optional[Engine] = None,
    reply_generator: Optional[ReplyGenerator] = None,
) -> FastAPI:
    cfg = settings or default_settings
    menu = catalog or JsonMenuCatalog(cfg.menu_path or None)
    sessions = store or SessionStore(max_age=cfg.session_max_age)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(cfg.log_level)
        init_db(db_engine or default_engine)

        sweeper: Optional[asyncio.Task] = None
        if cfg.sweep_interval_seconds > 0:
            sweeper = asyncio.create_task(_sweep_loop(sessions, cfg.sweep_interval_seconds))
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweeper

    app = FastAPI(
        title="Chef Bot Ordering API",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.engine = OrderingEngine(sessions, menu)
    app.state.reply_generator = reply_generator or ReplyGenerator(cfg)

    # -------------------
    # Health
    # -------------------
    @app.get("/")
    def root():
        return {"ok": True, "service": "chefbot", "sessions": len(sessions)}

    # -------------------
    # Menu
    # -------------------
    @app.get("/menu")
    def read_menu(engine: OrderingEngine = Depends(get_engine)):
        cat = engine.catalog
        items: List[Dict[str, Any]] = [
            {
                "id": it.id,
                "name": it.name,
                "description": it.description,
                "price": f"{it.price:.2f}",
                "category": it.category,
            }
            for it in cat.list_available_items()
        ]
        return {"currency_symbol": cat.currency_symbol, "items": items}

    # -------------------
    # Chat ordering
    # -------------------
    @app.post("/chat/{platform}/{conversation_key}")
    async def chat(
        platform: str,
        conversation_key: str,
        payload: ChatIn,
        engine: OrderingEngine = Depends(get_engine),
        generator: ReplyGenerator = Depends(get_reply_generator),
        db: Session = Depends(get_db),
    ):
        customer = {"name": payload.customer_name, "phone": payload.customer_phone}
        result = engine.process_turn(conversation_key, platform, payload.message, customer)

        session = engine.store.get_or_create(conversation_key, platform)
        action_results = engine.execute_due_actions(session, result.due_actions, SqlOrderPersistence(db))

        context = dict(result.reply_context)
        context["stage"] = session.stage.value
        failed = [r for r in action_results if not r.ok]
        if failed:
            context["order_error"] = str(failed[0].error)

        reply = await generator.generate(
            payload.message,
            context,
            transcript=session.transcript,
            menu_items=engine.catalog.list_available_items(),
        )
        engine.record_reply(session, reply)

        return {
            "reply": reply,
            "intent": result.intent.value,
            "stage": session.stage.value,
            "extracted": result.extracted.model_dump(mode="json"),
            "order": session.current_order.model_dump(mode="json"),
            "due_actions": [a.model_dump(mode="json") for a in result.due_actions],
            "action_results": [_result_json(r) for r in action_results],
            "recorded_order_id": session.recorded_order_id,
        }

    # -------------------
    # Sessions
    # -------------------
    @app.get("/sessions/{conversation_key}")
    def read_session(conversation_key: str, engine: OrderingEngine = Depends(get_engine)):
        session = engine.store.get(conversation_key)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session.model_dump(mode="json", exclude={"transcript"})

    @app.post("/sessions/{conversation_key}/payment")
    def payment_received(
        conversation_key: str,
        engine: OrderingEngine = Depends(get_engine),
        db: Session = Depends(get_db),
    ):
        session = engine.store.get(conversation_key)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")

        order_id = session.recorded_order_id
        if not engine.payment_received(conversation_key):
            raise HTTPException(status_code=409, detail=f"Session is in stage '{session.stage.value}'")

        if order_id is not None:
            SqlOrderPersistence(db).mark_paid(order_id)
        return {"ok": True, "stage": session.stage.value, "order_id": order_id}

    return app


app = create_app()
