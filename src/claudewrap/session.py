"""Multi-turn conversations on top of ClaudeClient."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from claudewrap.errors import ClaudeWrapError
from claudewrap.models import ClaudeResponse, PromptRequest, ResultMessage

if TYPE_CHECKING:
    from claudewrap.client import ClaudeClient

logger = logging.getLogger(__name__)


class Session:
    """Chains prompts by resuming the most recent session id.

    ``session_ids`` and ``messages`` grow by one entry per successful
    turn, in order.
    """

    def __init__(self, client: ClaudeClient) -> None:
        self.client = client
        self.session_ids: list[str] = []
        self.messages: list[ResultMessage] = []

    @property
    def last_session_id(self) -> str | None:
        return self.session_ids[-1] if self.session_ids else None

    async def prompt(self, prompt: str | PromptRequest) -> ClaudeResponse:
        """Send *prompt* as the next turn.

        Raises:
            ClaudeWrapError: The CLI returned no result message.
        """
        if isinstance(prompt, PromptRequest) and prompt.stream:
            prompt = prompt.model_copy(update={"stream": False})

        response = await self.client.chat(prompt, self.last_session_id)
        if not isinstance(response, ClaudeResponse) or response.message is None:
            msg = "No message returned from Claude"
            raise ClaudeWrapError(msg)

        self.messages.append(response.message)
        if response.message.session_id:
            self.session_ids.append(response.message.session_id)
        else:
            logger.warning("result message carried no session id")
        return response
