import logging
import os
from contextlib import asynccontextmanager
from typing import List

from bson.errors import InvalidId
from bson.objectid import ObjectId
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
from config import settings
from database import create_document, find_one, get_db
from logging_setup import setup_logging
from schemas import (
    GoogleLoginPayload,
    LoginPayload,
    SignupPayload,
    Task,
    TaskCreate,
    TaskShare,
    TaskUpdate,
    TokenClaims,
    User,
)
from security import (
    InvalidTokenError,
    create_access_token,
    get_current_claims,
    hash_password,
    verify_google_credential,
    verify_password,
)

logger = logging.getLogger(__name__)


def _connect_or_exit() -> None:
    try:
        database.connect()
    except PyMongoError as exc:
        logger.critical("MongoDB connection error: %s", exc)
        raise SystemExit(1) from exc


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is None:
        _connect_or_exit()
    yield
    database.close()


# App setup
app = FastAPI(title="Kanban Board API", version="0.2.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error leaves the API as {"error": message}
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse({"error": message}, status_code=status.HTTP_400_BAD_REQUEST)


# Helpers
def _object_id(value: str, detail: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=404, detail=detail)


def _issue_token(user: dict) -> str:
    return create_access_token(str(user["_id"]), user["username"])


def _require_user(db: Database, claims: TokenClaims) -> dict:
    user = None
    if ObjectId.is_valid(claims.user_id):
        user = find_one(db, "user", {"_id": ObjectId(claims.user_id)})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _owned_task_filter(task_id: str, claims: TokenClaims) -> dict:
    # Tasks the caller does not own are reported exactly like missing ones.
    return {"_id": _object_id(task_id, "Task not found"), "owners": claims.user_id}


def serialize_task(doc: dict) -> dict:
    return {
        "_id": str(doc["_id"]),
        "text": doc.get("text"),
        "status": doc.get("status", "todo"),
        "owners": [str(o) for o in doc.get("owners", [])],
    }


# Routes
@app.get("/", response_class=PlainTextResponse)
def read_root():
    return "Kanban Backend is running."


@app.get("/test")
def test_database():
    """Report whether the database is reachable; never fails."""
    response = {
        "backend": "Running",
        "database": "Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }
    current = database.db
    if current is not None:
        response["database"] = "Available"
        response["database_name"] = current.name
        response["connection_status"] = "Connected"
        try:
            response["collections"] = current.list_collection_names()[:10]
            response["database"] = "Connected & Working"
        except PyMongoError as e:
            response["database"] = f"Connected but Error: {str(e)[:50]}"

    response["database_url"] = "Set" if os.getenv("DATABASE_URL") else "Not Set"
    response["database_name"] = response["database_name"] or ("Set" if os.getenv("DATABASE_NAME") else "Not Set")
    return response


# Auth Endpoints
@app.post("/api/auth/signup", response_class=PlainTextResponse)
def signup(payload: SignupPayload, db: Database = Depends(get_db)):
    if not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="Username and password required")
    if find_one(db, "user", {"username": payload.username}):
        raise HTTPException(status_code=400, detail="Username already exists")

    user_doc = User(username=payload.username, password_hash=hash_password(payload.password))
    try:
        create_document(db, "user", user_doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Username already exists")

    logger.info("Signed up user %s", payload.username)
    return "Signup successful"


@app.post("/api/auth/login")
def login(payload: LoginPayload, db: Database = Depends(get_db)):
    if not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="Username and password required")

    user = find_one(db, "user", {"username": payload.username})
    if not user or not verify_password(payload.password, user.get("password_hash")):
        logger.info("Failed login for %s", payload.username)
        raise HTTPException(status_code=400, detail="Invalid credentials")

    logger.info("User %s logged in", user["username"])
    return {"token": _issue_token(user), "username": user["username"]}


@app.post("/api/auth/google")
def google_login(payload: GoogleLoginPayload, db: Database = Depends(get_db)):
    if not payload.credential:
        raise HTTPException(status_code=400, detail="Missing credential")

    try:
        identity = verify_google_credential(payload.credential)
    except InvalidTokenError as exc:
        logger.warning("Google login error: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid Google token")

    user = find_one(db, "user", {"google_id": identity.sub})
    if not user:
        # Display name first, then email; fail only when every candidate is taken.
        candidates = [c for c in dict.fromkeys([identity.name, identity.email]) if c] or [identity.sub]
        user_id = None
        for username in candidates:
            user_doc = User(username=username, email=identity.email, google_id=identity.sub)
            try:
                user_id = create_document(db, "user", user_doc)
                break
            except DuplicateKeyError:
                continue
        if user_id is None:
            raise HTTPException(status_code=400, detail="Username already exists")
        user = find_one(db, "user", {"_id": ObjectId(user_id)})
        logger.info("Created user %s from Google account", username)

    return {
        "token": _issue_token(user),
        "user": {"username": user["username"], "email": user.get("email")},
    }


# Task Endpoints
@app.get("/api/tasks")
def list_tasks(claims: TokenClaims = Depends(get_current_claims), db: Database = Depends(get_db)) -> List[dict]:
    user = _require_user(db, claims)
    docs = db["task"].find({"owners": str(user["_id"])})
    return [serialize_task(d) for d in docs]


@app.post("/api/tasks", response_class=PlainTextResponse)
def create_task(data: TaskCreate, claims: TokenClaims = Depends(get_current_claims), db: Database = Depends(get_db)):
    if not data.text or not data.text.strip():
        raise HTTPException(status_code=400, detail="Task text required")

    user = _require_user(db, claims)
    task_id = create_document(db, "task", Task(text=data.text, status="todo", owners=[str(user["_id"])]))
    logger.info("User %s created task %s", claims.username, task_id)
    return task_id


@app.put("/api/tasks/{task_id}", response_class=PlainTextResponse)
def update_task(
    task_id: str,
    data: TaskUpdate,
    claims: TokenClaims = Depends(get_current_claims),
    db: Database = Depends(get_db),
):
    updates = data.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="Nothing to update")
    if "text" in updates and not updates["text"].strip():
        raise HTTPException(status_code=400, detail="Task text required")

    res = db["task"].update_one(
        _owned_task_filter(task_id, claims),
        {"$set": updates, "$currentDate": {"updated_at": True}},
    )
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="Task not found")
    logger.info("User %s updated task %s: %s", claims.username, task_id, sorted(updates))
    return "Task updated"


@app.delete("/api/tasks/{task_id}", response_class=PlainTextResponse)
def delete_task(task_id: str, claims: TokenClaims = Depends(get_current_claims), db: Database = Depends(get_db)):
    res = db["task"].delete_one(_owned_task_filter(task_id, claims))
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Task not found")
    logger.info("User %s deleted task %s", claims.username, task_id)
    return "Task deleted"


@app.post("/api/tasks/{task_id}/share", response_class=PlainTextResponse)
def share_task(
    task_id: str,
    data: TaskShare,
    claims: TokenClaims = Depends(get_current_claims),
    db: Database = Depends(get_db),
):
    if not data.toUsername:
        raise HTTPException(status_code=400, detail="Target username required")

    target = find_one(db, "user", {"username": data.toUsername})
    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    task = find_one(db, "task", _owned_task_filter(task_id, claims))
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")

    target_id = str(target["_id"])
    if target_id in task.get("owners", []):
        raise HTTPException(status_code=400, detail="Task already shared with this user")

    db["task"].update_one(
        {"_id": task["_id"]},
        {"$addToSet": {"owners": target_id}, "$currentDate": {"updated_at": True}},
    )
    logger.info("User %s shared task %s with %s", claims.username, task_id, data.toUsername)
    return "Task shared"


def run() -> None:
    import uvicorn

    setup_logging(settings.log_level)
    _connect_or_exit()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
