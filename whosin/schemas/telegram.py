from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    id: int
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class TelegramChat(BaseModel):
    id: int
    title: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class TelegramMessage(BaseModel):
    message_id: int
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TelegramUpdate(BaseModel):
    update_id: int
    message: Optional[TelegramMessage] = None

    model_config = ConfigDict(extra="ignore")
