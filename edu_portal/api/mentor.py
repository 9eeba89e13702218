"""
AI Mentor API Routes
FILE: edu_portal/api/mentor.py
"""
from fastapi import APIRouter, Depends
import logging

from edu_portal.api.deps import get_mentor_service
from edu_portal.models.chat import ChatRequest, ChatResponse
from edu_portal.services.mentor_service import MentorService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/ai-mentor",
    response_model=ChatResponse,
    summary="Chat with the AI mentor",
    description="""
    Answer a student's question, grounded on the study material that matches
    their board and class.

    Providers are tried in a fixed order until one answers.
    """
)
async def ai_mentor(
    request: ChatRequest,
    service: MentorService = Depends(get_mentor_service)
):
    logger.info(f"💬 Mentor request with {len(request.messages)} messages")
    response = await service.reply(request.messages, request.context)
    return ChatResponse(response=response)
