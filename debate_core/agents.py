"""Debate agents"""

import logging
from typing import Optional, Sequence

from llm_client import PartialCallback, TextGenerator

from .prompts import create_debater_prompt
from .types import DebateMessage, Side

logger = logging.getLogger(__name__)


class DebateAgent:
    """One debater, pro or con"""

    def __init__(self, side: Side, client: TextGenerator):
        self.side = side
        self.client = client
        self.conversation_id: Optional[str] = None

    async def generate_response(
        self,
        topic: str,
        background: str,
        context: Sequence[DebateMessage],
        on_partial: Optional[PartialCallback] = None,
    ) -> str:
        """Produce the next turn given the whole transcript

        Errors from the client propagate; the orchestrator decides what a
        failed turn means for the debate.
        """
        prompt = create_debater_prompt(self.side, topic, background, context)
        result = await self.client.generate(prompt, self.side, self.conversation_id, on_partial)
        self.conversation_id = result.conversation_id or self.conversation_id
        logger.debug(f"{self.side} agent produced {len(result.text)} chars")
        return result.text.strip()
