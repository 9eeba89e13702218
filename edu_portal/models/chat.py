"""
Mentor Chat Models
FILE: edu_portal/models/chat.py
"""
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from edu_portal.models.generation import ChatMessage


class ChatContext(BaseModel):
    board: Optional[str] = None
    class_level: Optional[int] = Field(None, ge=1, le=12)


class ChatRequest(BaseModel):
    """Request model for an AI mentor turn"""
    messages: List[ChatMessage] = Field(..., min_length=1)
    context: Optional[ChatContext] = None

    @model_validator(mode="after")
    def ends_with_user_turn(self):
        if self.messages and self.messages[-1].role != "user":
            raise ValueError("the last message must come from the user")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "messages": [
                    {"role": "user", "content": "Explain Newton's third law with an example"}
                ],
                "context": {"board": "cbse", "class_level": 9}
            }
        }


class ChatResponse(BaseModel):
    response: str
