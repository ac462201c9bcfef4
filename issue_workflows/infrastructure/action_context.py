import logging
from typing import Optional, Tuple

from issue_workflows.domain.exceptions import ConfigurationException

logger = logging.getLogger(__name__)


class ActionContext:
    """
    Process-wide handles for the running workflow: the API client and the repository that
    triggered the run. Entities fall back to these when not given explicit values.
    """

    _client = None
    _owner: Optional[str] = None
    _repository: Optional[str] = None

    @classmethod
    def init(cls, client, owner: Optional[str] = None, repository: Optional[str] = None) -> None:
        cls._client = client
        cls._owner = owner
        cls._repository = repository
        logger.debug(f"Action context initialised for {owner}/{repository}.")

    @classmethod
    def reset(cls) -> None:
        cls._client = None
        cls._owner = None
        cls._repository = None

    @classmethod
    def client(cls):
        if cls._client is None:
            raise ConfigurationException("ActionContext has no GitHub client; call ActionContext.init first.")
        return cls._client

    @classmethod
    def repo(cls) -> Tuple[str, str]:
        """Returns the default (owner, repository) pair."""
        if not cls._owner or not cls._repository:
            raise ConfigurationException("ActionContext has no default repository; call ActionContext.init first.")
        return cls._owner, cls._repository
