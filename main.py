import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo.database import Database

import config
from access import AllowFiltered, AuthContext, authorize
from auth import get_auth_context, hash_password
from database import (
    connect,
    create_document,
    decision_to_query,
    delete_document,
    find_one,
    get_document,
    get_documents,
    update_document,
)
from exceptions import AuthorizationDenied, DuplicateValueException, NotFoundException
from initial_data import initialise_data
from lists import ListConfig, Registry, build_registry

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("team_corner")


# -----------------------------
# Helpers
# -----------------------------
class OkResponse(BaseModel):
    ok: bool


def oid(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid id format")


def get_db(request: Request) -> Database:
    return request.app.state.db


def serialize(cfg: ListConfig, record: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(record)
    for name in cfg.secret_fields:
        out[f"{name}_is_set"] = bool(out.pop(name, None))
    return out


def _prepare_write(db: Database, cfg: ListConfig, data: Dict[str, Any], current_id: Optional[ObjectId] = None):
    for name in cfg.secret_fields:
        if data.get(name) is not None:
            data[name] = hash_password(data[name])
    for name in cfg.unique_fields:
        if data.get(name) is None:
            # sparse unique index: absent values never collide
            data.pop(name, None)
            continue
        clash = find_one(db, cfg.collection, {name: data[name]})
        if clash and (current_id is None or clash["id"] != str(current_id)):
            raise DuplicateValueException(name)
    return data


def _load(db: Database, cfg: ListConfig, item_id: str) -> Dict[str, Any]:
    record = get_document(db, cfg.collection, oid(item_id))
    if record is None:
        raise NotFoundException(f"{cfg.key} not found")
    return record


def _actor(ctx: AuthContext) -> Optional[str]:
    return ctx.item.id if ctx.item else None


# -----------------------------
# Per-list CRUD routes
# -----------------------------
def add_list_routes(app: FastAPI, cfg: ListConfig) -> None:
    create_schema = cfg.schema
    update_schema = cfg.update_schema
    base = f"/api/{cfg.path}"
    tags = [cfg.key]

    @app.get(base, name=f"list_{cfg.collection}", tags=tags)
    def list_items(ctx: AuthContext = Depends(get_auth_context), db: Database = Depends(get_db)) -> List[dict]:
        if not ctx.is_authenticated and cfg.access.is_owner_scoped("read"):
            # nobody owns anything anonymously
            return []
        decision = authorize(cfg.access, "read", ctx, list_key=cfg.key)
        query = decision_to_query(decision)
        if query is None:
            return []
        return [serialize(cfg, r) for r in get_documents(db, cfg.collection, query)]

    @app.get(base + "/{item_id}", name=f"get_{cfg.collection}", tags=tags)
    def get_item(item_id: str, ctx: AuthContext = Depends(get_auth_context), db: Database = Depends(get_db)) -> dict:
        # check list access before revealing whether the record exists
        authorize(cfg.access, "read", ctx, list_key=cfg.key)
        record = _load(db, cfg, item_id)
        authorize(cfg.access, "read", ctx, record=record, list_key=cfg.key)
        return serialize(cfg, record)

    @app.post(base, name=f"create_{cfg.collection}", tags=tags, status_code=201)
    def create_item(
        payload: create_schema,
        ctx: AuthContext = Depends(get_auth_context),
        db: Database = Depends(get_db),
    ) -> dict:
        decision = authorize(cfg.access, "create", ctx, list_key=cfg.key)
        if isinstance(decision, AllowFiltered):
            # a filter cannot scope a record that does not exist yet
            raise AuthorizationDenied(list_key=cfg.key, operation="create")
        data = _prepare_write(db, cfg, payload.model_dump(mode="json"))
        new_id = create_document(db, cfg.collection, data, actor_id=_actor(ctx), tracking=cfg.tracking)
        return serialize(cfg, get_document(db, cfg.collection, ObjectId(new_id)))

    @app.patch(base + "/{item_id}", name=f"update_{cfg.collection}", tags=tags)
    def update_item(
        item_id: str,
        payload: update_schema,
        ctx: AuthContext = Depends(get_auth_context),
        db: Database = Depends(get_db),
    ) -> dict:
        changes = payload.model_dump(mode="json", exclude_unset=True)
        authorize(cfg.access, "update", ctx, fields=changes.keys(), list_key=cfg.key)
        record = _load(db, cfg, item_id)
        authorize(cfg.access, "update", ctx, record=record, fields=changes.keys(), list_key=cfg.key)
        changes = _prepare_write(db, cfg, changes, current_id=oid(item_id))
        updated = update_document(
            db, cfg.collection, oid(item_id), changes, actor_id=_actor(ctx), tracking=cfg.tracking
        )
        return serialize(cfg, updated)

    @app.delete(base + "/{item_id}", name=f"delete_{cfg.collection}", tags=tags, response_model=OkResponse)
    def delete_item(item_id: str, ctx: AuthContext = Depends(get_auth_context), db: Database = Depends(get_db)):
        authorize(cfg.access, "delete", ctx, list_key=cfg.key)
        record = _load(db, cfg, item_id)
        authorize(cfg.access, "delete", ctx, record=record, list_key=cfg.key)
        delete_document(db, cfg.collection, oid(item_id))
        return {"ok": True}


# -----------------------------
# Application
# -----------------------------
def create_app(db: Optional[Database] = None, registry: Optional[Registry] = None) -> FastAPI:
    registry = registry or build_registry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.db is None:
            app.state.db = connect()
        initialise_data(app.state.db, app.state.registry)
        yield

    app = FastAPI(title=f"{config.PROJECT_NAME} API", lifespan=lifespan)
    app.state.db = db
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuthorizationDenied)
    async def authorization_denied_handler(request: Request, exc: AuthorizationDenied):
        return JSONResponse(status_code=403, content={"detail": exc.message})

    @app.exception_handler(NotFoundException)
    async def not_found_handler(request: Request, exc: NotFoundException):
        return JSONResponse(status_code=404, content={"detail": exc.message})

    @app.exception_handler(DuplicateValueException)
    async def duplicate_value_handler(request: Request, exc: DuplicateValueException):
        return JSONResponse(status_code=409, content={"detail": str(exc), "field": exc.field_name})

    @app.get("/")
    def read_root():
        return {"message": f"{config.PROJECT_NAME} Backend is running"}

    @app.get("/test")
    def test_database(request: Request):
        response = {
            "backend": "✅ Running",
            "database": "❌ Not Available",
            "database_url": "✅ Set" if config.DATABASE_URL else "❌ Not Set",
            "database_name": "✅ Set" if config.DATABASE_NAME else "❌ Not Set",
            "connection_status": "Not Connected",
            "collections": [],
        }

        current_db = request.app.state.db
        if current_db is None:
            response["database"] = "⚠️  Available but not initialized"
            return response
        try:
            response["collections"] = current_db.list_collection_names()
            response["database"] = "✅ Connected & Working"
            response["connection_status"] = "Connected"
        except Exception as e:
            response["database"] = f"⚠️  Connected but Error: {str(e)[:120]}"
        return response

    @app.get("/schema")
    def get_schema_overview(request: Request):
        lists = request.app.state.registry
        return {"name": config.PROJECT_NAME, "lists": {cfg.key: cfg.describe() for cfg in lists}}

    for cfg in registry:
        add_list_routes(app, cfg)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
