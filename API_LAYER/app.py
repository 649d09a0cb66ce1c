# API_LAYER/app.py
import asyncio
import json
import logging
import os
from asyncio import Lock
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import DATABASE_URL, DEBUG
from core.errors import AssistantError, InvalidTransition, TaskNotFound
from core.task_state import TaskStatus
from executors.action import ActionExecutor
from services.assistant import AssistantService
from services.conversation_store import InMemoryConversationStore, PrismaConversationStore
from services.routes import build_dispatcher
from services.task_registry import TaskRegistry
from services.utils import preview


# -----------------------------
# Structured Logging Setup
# -----------------------------
class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "time": self.formatTime(record, self.datefmt),
                "level": record.levelname,
                "name": record.name,
                "message": record.getMessage(),
                "exception": record.exc_text,
            }
        )


logger = logging.getLogger("aura_api")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(JSONFormatter())
if not logger.handlers:
    logger.addHandler(handler)

# -----------------------------
# FastAPI App
# -----------------------------
app = FastAPI(title="A.U.R.A Assistant API", version="1.0")

# -----------------------------
# Core wiring
# -----------------------------
registry = TaskRegistry()
dispatcher = build_dispatcher()
action_executor = ActionExecutor(dispatcher, registry)
store = InMemoryConversationStore()
assistant = AssistantService(registry, action_executor, store=store)

DB_CONNECTED: bool = False
DB_ERROR: str | None = None

# -----------------------------
# Metrics
# -----------------------------
metrics_lock = Lock()
request_counters = {
    "plain_reply": 0,
    "action": 0,
    "error_replies": 0,
    "total": 0,
    "errors": 0,
}

ERROR_STATUS = {
    TaskNotFound: 404,
    InvalidTransition: 409,
}


# -----------------------------
# Pydantic Models
# -----------------------------
class UserRequest(BaseModel):
    text: str
    user_id: str
    conversation_id: Optional[str] = None


# -----------------------------
# Failure envelope
# -----------------------------
def failure_response(status_code: int, error_type: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"type": error_type, "message": message}},
    )


@app.exception_handler(AssistantError)
async def assistant_error_handler(request: Request, exc: AssistantError):
    status_code = ERROR_STATUS.get(type(exc), 500)
    message = str(exc) if (status_code < 500 or DEBUG) else "An unexpected error occurred"
    return failure_response(status_code, exc.error_type, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return failure_response(exc.status_code, "http_error", str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return failure_response(422, "validation_error", message)


# -----------------------------
# Startup / Shutdown Events
# -----------------------------
@app.on_event("startup")
async def startup():
    global DB_CONNECTED, DB_ERROR, store

    if not DATABASE_URL:
        logger.warning("DATABASE_URL not set; using in-memory conversation store.")
        DB_CONNECTED = False
        DB_ERROR = "DATABASE_URL not set"
        return

    try:
        prisma_store = PrismaConversationStore()
        await prisma_store.connect()
        store = prisma_store
        assistant.store = prisma_store
        DB_CONNECTED = True
        DB_ERROR = None
        logger.info("✅ Prisma conversation store connected")
    except Exception as e:
        DB_CONNECTED = False
        DB_ERROR = str(e)
        logger.exception("❌ Failed to connect Prisma DB; keeping in-memory store")
        if DEBUG:
            raise


@app.on_event("shutdown")
async def shutdown():
    global DB_CONNECTED

    await action_executor.drain()

    if DB_CONNECTED:
        try:
            await store.disconnect()
            DB_CONNECTED = False
        except Exception:
            logger.exception("❌ Failed to disconnect Prisma DB")
    else:
        logger.info("DB not connected; skipping disconnect")


# -----------------------------
# API Endpoints
# -----------------------------
@app.get("/")
async def root():
    return {"message": "A.U.R.A Assistant API is running."}


@app.get("/health")
async def health() -> Dict[str, Any]:
    info = {"status": "ok", "db_connected": DB_CONNECTED, "tasks": len(registry)}
    if DB_ERROR:
        info["db_error"] = DB_ERROR
    return info


@app.get("/metrics")
async def metrics() -> Dict[str, Any]:
    """Returns request counts and error metrics."""
    async with metrics_lock:
        return request_counters.copy()


@app.post("/process")
async def process_request(request: UserRequest):
    async with metrics_lock:
        request_counters["total"] += 1

    try:
        logger.info(
            f"[REQUEST_START] user_id={request.user_id}, text='{preview(request.text)}'"
        )

        conversation_id = request.conversation_id
        if not conversation_id:
            conversation = await assistant.store.create_conversation(request.user_id, title=request.text[:60])
            conversation_id = conversation.id

        outcome = await assistant.handle_turn(conversation_id, request.user_id, request.text)

        async with metrics_lock:
            if outcome.type == "plain_reply":
                request_counters["plain_reply"] += 1
            elif outcome.type == "error":
                request_counters["error_replies"] += 1
            else:
                request_counters["action"] += 1

        return outcome.model_dump(mode="json")

    except AssistantError:
        async with metrics_lock:
            request_counters["errors"] += 1
        raise
    except Exception as e:
        async with metrics_lock:
            request_counters["errors"] += 1
        logger.exception(f"[ERROR] user_id={request.user_id}, exception={e}")
        return failure_response(
            500,
            "internal_error",
            str(e) if DEBUG else "An unexpected error occurred",
        )


@app.get("/tasks")
async def list_tasks(status: Optional[TaskStatus] = None, suggested: Optional[bool] = None):
    tasks = registry.list()
    if status is not None:
        tasks = [t for t in tasks if t.status == status]
    if suggested is not None:
        tasks = [t for t in tasks if t.suggested == suggested]
    return [t.model_dump(mode="json") for t in tasks]


@app.get("/tasks/{task_id}")
async def get_task(task_id: str):
    return registry.get(task_id).model_dump(mode="json")


@app.get("/conversations")
async def list_conversations(user_id: str):
    conversations = await assistant.store.list_conversations(user_id)
    return [c.model_dump(mode="json") for c in conversations]


@app.get("/conversations/{conversation_id}/messages")
async def conversation_messages(conversation_id: str):
    messages = await assistant.store.get_messages(conversation_id)
    return [m.model_dump(mode="json") for m in messages]


@app.websocket("/tasks/stream")
async def task_stream(websocket: WebSocket):
    """
    Sends {"event": "subscribed"} once, then pushes every task creation
    and transition as {"event": "task", "task": {...}}.
    """
    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    # Listener runs on the subscription thread
    subscription = registry.subscribe(lambda task: loop.call_soon_threadsafe(queue.put_nowait, task))
    logger.info(f"[STREAM_OPEN] subscription={subscription.name}")

    try:
        await websocket.send_json({"event": "subscribed", "subscription": subscription.name})
        sender = asyncio.create_task(_forward_tasks(websocket, queue))
        try:
            # Client messages are ignored; receiving detects the disconnect
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            await _stop_sender(sender)
    except WebSocketDisconnect:
        pass
    finally:
        subscription.unsubscribe()
        logger.info(f"[STREAM_CLOSED] subscription={subscription.name}")


async def _forward_tasks(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        task = await queue.get()
        await websocket.send_json({"event": "task", "task": task.model_dump(mode="json")})


async def _stop_sender(sender: asyncio.Task) -> None:
    """Cancel the forwarding task and collect its outcome."""
    sender.cancel()
    try:
        await sender
    except asyncio.CancelledError:
        pass
    except Exception as e:
        # Sends fail once the client has gone away
        logger.warning(f"[STREAM_SEND_FAILED] exception={e}")


# -----------------------------
# Entrypoint
# -----------------------------
if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("API_LAYER.app:app", host="0.0.0.0", port=port, workers=1)
