"""
Mentor Service
Grounded chat replies for the AI mentor
FILE: edu_portal/services/mentor_service.py
"""
import logging
from typing import List, Optional

from edu_portal.core.config import Settings
from edu_portal.models.chat import ChatContext
from edu_portal.models.content import ContentScope
from edu_portal.models.generation import ChatMessage, GenerationRequest
from edu_portal.services.context_assembler import ContextAssembler
from edu_portal.services.llm_client import ProviderGateway
from edu_portal.utils.quiz_prompt import build_mentor_system_prompt

logger = logging.getLogger(__name__)


class MentorService:

    def __init__(self, assembler: ContextAssembler, gateway: ProviderGateway, settings: Settings):
        self.assembler = assembler
        self.gateway = gateway
        self.settings = settings

    async def reply(self, messages: List[ChatMessage], context: Optional[ChatContext] = None) -> str:
        """
        Answer the latest turn of a conversation

        The conversation is grounded on whatever content matches the caller's
        board and class; an empty bundle is fine.

        Returns:
            The provider's raw reply text
        """
        scope = ContentScope(
            board=context.board if context else None,
            class_level=context.class_level if context else None
        )

        bundle = await self.assembler.assemble(
            scope,
            max_total_chars=self.settings.chat_max_context_chars,
            fragment_char_limit=self.settings.chat_fragment_chars
        )

        request = GenerationRequest(
            system_prompt=build_mentor_system_prompt(bundle),
            messages=tuple(messages),
            max_output_tokens=self.settings.chat_max_output_tokens,
            temperature=self.settings.generation_temperature
        )

        outcome = await self.gateway.generate(request)
        logger.info(f"💬 Mentor reply from {outcome.provider} ({len(outcome.text)} chars)")
        return outcome.text
