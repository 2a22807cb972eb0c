from abc import ABC, abstractmethod

from contracts.fast_config import FastConfig


class EndpointSource(ABC):
    """
    Abstract base class for services that supply download targets and the
    identity of the measuring client.
    """

    @abstractmethod
    async def load(self) -> FastConfig:
        """
        Fetch the list of targets and client metadata.

        Returns:
            FastConfig: Client identity and ordered download targets.

        Raises:
            EndpointSourceError: If the configuration could not be loaded.
        """
