from abc import ABC, abstractmethod

from models.turn import TurnReply


class BaseExecutor(ABC):
    """
    Base contract for all executors.
    Executors take one classification result and return the turn's reply.
    No routing and no classification here.
    """

    @abstractmethod
    async def execute(self, classification) -> TurnReply:
        pass
