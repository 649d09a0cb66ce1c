from abc import ABC, abstractmethod
from typing import Any, Dict

from pydantic import BaseModel


class CapabilityProvider(ABC):
    """
    Base contract for every capability provider.
    Providers take a domain request and return the raw provider record.
    They never see or mutate a Task.

    Failures are raised as ProviderUnavailable or ProviderRejected.
    """

    name: str = "provider"

    @abstractmethod
    async def invoke(self, request: BaseModel) -> Dict[str, Any]:
        pass
