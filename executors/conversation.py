from core.intent import PlainReply
from executors.base import BaseExecutor
from models.turn import TurnReply


class ConversationExecutor(BaseExecutor):
    """
    Executes plain replies. The classifier already produced the text;
    nothing is dispatched and no task is created.
    """

    async def execute(self, reply: PlainReply) -> TurnReply:
        return TurnReply(type="plain_reply", message=reply.text)
