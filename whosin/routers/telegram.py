from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..config import get_settings
from ..db import SessionLocal
from ..errors import StorageError
from ..repository import Repository, SqlRepository
from ..schemas.roll_call import RollCallRead, RollCallResponseRead, RollCallSnapshot
from ..schemas.telegram import TelegramUpdate
from ..services import summary
from ..services.bot import WhosInBot
from ..services.commands import parse_message

router = APIRouter(tags=["roll_calls"])
settings = get_settings()


def get_repository() -> Repository:
    return SqlRepository(SessionLocal)


@router.post("/telegram/webhook")
async def telegram_webhook(
    request: Request,
    update: TelegramUpdate,
    repository: Repository = Depends(get_repository),
):
    secret = request.headers.get("x-telegram-bot-api-secret-token")
    if settings.telegram_webhook_secret and secret != settings.telegram_webhook_secret:
        return JSONResponse({"error": "unauthorized"}, status_code=401)

    message = update.message
    if message is None or message.from_user is None:
        return JSONResponse({})

    chat_command = parse_message(
        chat_id=message.chat.id,
        user_id=message.from_user.id,
        username=message.from_user.first_name,
        text=message.text,
    )
    if chat_command is None:
        return JSONResponse({})

    reply = WhosInBot(repository).handle(chat_command)
    if reply is None:
        return JSONResponse({})
    return JSONResponse({"method": "sendMessage", "chat_id": message.chat.id, "text": reply})


@router.get("/api/chats/{chat_id}/roll-call")
async def get_roll_call(chat_id: int, repository: Repository = Depends(get_repository)):
    try:
        snapshot = repository.get_snapshot(chat_id)
    except StorageError:
        return JSONResponse({"error": "storage unavailable"}, status_code=503)
    if snapshot is None:
        return JSONResponse({"roll_call": None})

    payload = RollCallSnapshot(
        roll_call=RollCallRead.model_validate(snapshot.call),
        responses=[RollCallResponseRead.model_validate(r) for r in snapshot.responses],
        counts=summary.short_summary(snapshot.responses),
    )
    return JSONResponse(payload.model_dump(mode="json"))


@router.get("/healthz")
async def healthz():
    return {"status": "ok"}
