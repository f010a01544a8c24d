"""HTTP surface: processor callbacks and the gateway webhook."""
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from apkara.command import CommandHandler
from apkara.control import ControlService
from apkara.errors import ApKaraError, InvalidRequest
from apkara.logging_conf import logger
from apkara.transport import normalize_event


class SendMessageRequest(BaseModel):
    chat_id: Optional[str] = None
    message: Optional[Any] = None
    message_type: str = "text"
    reply_to_original: bool = False


class SendStatusRequest(BaseModel):
    chat_id: Optional[str] = None
    status: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    reply_to_original: bool = True


class ClearContextRequest(BaseModel):
    chat_id: Optional[str] = None


def create_app(control: ControlService, commands: CommandHandler) -> FastAPI:
    """Build the FastAPI app around already-wired services."""
    app = FastAPI(title="ap kara dispatch bot")

    @app.exception_handler(InvalidRequest)
    async def invalid_request_handler(request: Request, exc: InvalidRequest):
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @app.exception_handler(ApKaraError)
    async def apkara_error_handler(request: Request, exc: ApKaraError):
        logger.error(f"Error handling {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/send-message")
    def send_message(body: SendMessageRequest):
        control.send_message(body.chat_id, body.message, body.message_type, body.reply_to_original)
        return {"success": True, "message": "Message sent successfully"}

    @app.post("/send-status")
    def send_status(body: SendStatusRequest):
        control.send_status(body.chat_id, body.status, body.data, body.reply_to_original)
        return {"success": True, "message": "Status sent successfully"}

    @app.get("/queue-status")
    def queue_status():
        return {"success": True, "status": control.queue_status()}

    @app.post("/clear-queue")
    def clear_queue():
        cleared = control.clear_queue()
        return {
            "success": True,
            "message": f"Queue cleared. Removed {cleared} requests",
            "clearedCount": cleared,
        }

    @app.post("/clear-context")
    def clear_context(body: Optional[ClearContextRequest] = None):
        control.clear_context(body.chat_id if body else None)
        return {"success": True, "message": "Context cleared successfully"}

    @app.post("/webhooks/whatsapp")
    async def whatsapp_webhook(request: Request, background_tasks: BackgroundTasks):
        try:
            payload = await request.json()
        except ValueError:
            return JSONResponse(status_code=400, content={"success": False, "error": "invalid JSON"})

        message = normalize_event(payload) if isinstance(payload, dict) else None
        if message is None:
            return {"success": True, "handled": False}

        background_tasks.add_task(commands.handle, message)
        return {"success": True, "handled": True}

    return app
