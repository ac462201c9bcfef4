import logging
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from issue_workflows.domain.exceptions import (
    MissingFieldException,
    OperationUnimplementedException,
    UnregisteredPropertyException,
)
from issue_workflows.domain.fields import FieldKind, FieldMap, registry
from issue_workflows.domain.models import GraphQLQuery
from issue_workflows.infrastructure.action_context import ActionContext
from issue_workflows.infrastructure.actions_logging import verbose

logger = logging.getLogger(__name__)


class _Unknown:
    """Result of reading a property an entity type does not declare. Falsy, never raised."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNKNOWN"


UNKNOWN = _Unknown()


class GraphQLEntity:
    """
    Base class for GitHub objects whose fields are lazy-loaded from the GraphQL API.

    Identity attributes (the natural key, e.g. an Issue's owner, repository and number) are plain
    instance attributes set at construction. Every other field is declared in `FIELDS` and read
    with `await entity.get(name)`:

    - identity attributes are returned directly, with no network call;
    - names missing from `FIELDS` return `UNKNOWN`;
    - cached values are returned as-is;
    - relational fields are produced by the target type's `fetch_one`/`fetch_many`;
    - primitive fields trigger one query that loads every primitive field at once.

    The cache lasts until `clear_cache` is called, an identity attribute changes, or a mutation
    is made through the entity. Concurrent first reads are not coalesced; the last response to
    arrive wins.
    """

    TYPE_NAME: ClassVar[str] = "GraphQLEntity"
    IDENTITY: ClassVar[Tuple[str, ...]] = ()
    IDENTITY_KEYS: ClassVar[Tuple[str, ...]] = ()
    FIELDS: ClassVar[FieldMap] = FieldMap({})
    PAGE_SIZE: ClassVar[int] = 20

    def __init__(self, client=None, **identity: Any):
        object.__setattr__(self, "_client", client)
        object.__setattr__(self, "_cache", {})
        object.__setattr__(self, "_missing", set())

        for name in self.IDENTITY:
            object.__setattr__(self, name, identity.get(name))

        logger.debug(f"New {self!r}")

    def __repr__(self) -> str:
        key = ", ".join(f"{name}={getattr(self, name, None)!r}" for name in self.IDENTITY)
        return f"{self.TYPE_NAME}({key})"

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return

        if name in self.IDENTITY:
            logger.debug(f"Identity property `{self.TYPE_NAME}.{name}` set; clearing cache.")
            object.__setattr__(self, name, value)
            self.clear_cache()
            return

        if name in self.fields():
            raise UnregisteredPropertyException(
                self.TYPE_NAME,
                name,
                f"`{self.TYPE_NAME}.{name}` is loaded from GitHub; use `await entity.set('{name}', value)`.",
            )

        raise UnregisteredPropertyException(self.TYPE_NAME, name)

    @property
    def client(self):
        return self._client if self._client is not None else ActionContext.client()

    def fields(self) -> FieldMap:
        """The field map for this instance. Union types narrow it per instance."""
        return self.FIELDS

    def has(self, name: str) -> bool:
        return name in self.IDENTITY or name in self.fields()

    def clear_cache(self) -> None:
        self._cache = {}
        self._missing = set()

    @property
    def cached(self) -> Dict[str, Any]:
        return dict(self._cache)

    # Reading ----------------------------------------------------------------------------------

    async def get(self, name: str) -> Any:
        """
        Returns the value of `name`, loading it from GitHub on first access.

        Raises:
            MissingFieldException: if GitHub's response did not include the field.
        """
        if name in self.IDENTITY:
            verbose(logger, f"Lookup `{self.TYPE_NAME}.{name}` is an identity property.")
            return getattr(self, name)

        field = self.fields().get(name)
        if field is None:
            verbose(logger, f"Field `{self.TYPE_NAME}.{name}` requested, but doesn't exist.")
            return UNKNOWN

        if name in self._cache:
            verbose(logger, f"Lookup `{self.TYPE_NAME}.{name}` cache hit.")
            return self._cache[name]

        if name in self._missing:
            raise MissingFieldException(field.api_name)

        verbose(logger, f"Lookup `{self.TYPE_NAME}.{name}` cache miss.")

        if field.kind == FieldKind.RELATION_SINGULAR:
            target = registry.resolve(field.target)
            logger.debug(f"Loading `{self.TYPE_NAME}.{name}` from mapped `{target.TYPE_NAME}` type...")
            value = await target.fetch_one(self)
            self._cache[name] = value
            return value

        if field.kind == FieldKind.RELATION_COLLECTION:
            target = registry.resolve(field.target)
            page_size = field.page_size or target.PAGE_SIZE
            logger.debug(f"Loading `{self.TYPE_NAME}.{name}` from mapped `{target.TYPE_NAME}` type...")
            value = await target.fetch_many(self, page_size)
            self._cache[name] = value
            return value

        await self.load()

        if name not in self._cache:
            raise MissingFieldException(field.api_name)
        return self._cache[name]

    async def load(self) -> None:
        """Loads every primitive field of this entity in a single GraphQL query."""
        query = self._graphql_query()

        logger.debug(f"Loading {self!r} data from GitHub GraphQL API...")
        verbose(logger, f"Container: {query.path}")

        response = await self.client.graphql(query.text, query.variables)
        data = query.descend(response)
        if data is None:
            raise MissingFieldException(
                query.path[-1] if query.path else self.TYPE_NAME,
                f"{self!r} was not found in the GraphQL response.",
            )

        self._populate(data)

        primitives = self.fields().primitive_fields()
        missing = {field.name for field in primitives if field.api_name not in data}
        for name in missing:
            self._cache.pop(name, None)
        self._missing = missing

        if missing:
            logger.debug(f"Response for {self!r} omitted field(s): {', '.join(sorted(missing))}.")

    def _populate(self, data: Dict[str, Any], ignore_additional: bool = True) -> None:
        fields = self.fields()
        for key, value in data.items():
            field = fields.by_api_name(key)
            if field is None:
                if not ignore_additional and key not in self.IDENTITY_KEYS:
                    raise UnregisteredPropertyException(self.TYPE_NAME, key)
                continue
            if field.is_primitive:
                self._cache[field.name] = field.coerce(value)

    def _graphql_query(self) -> GraphQLQuery:
        raise OperationUnimplementedException(f"Direct loading of {self.TYPE_NAME} is not supported.")

    # Writing ----------------------------------------------------------------------------------

    async def set(self, name: str, value: Any) -> None:
        """
        Sets `name`. Identity properties change locally; registered primitive fields are written
        to GitHub through the entity's update path. Either way the cache is cleared.
        """
        if name in self.IDENTITY:
            setattr(self, name, value)
            return

        field = self.fields().get(name)
        if field is None:
            raise UnregisteredPropertyException(self.TYPE_NAME, name)

        if field.is_relation:
            raise OperationUnimplementedException(
                f"Updating relational field `{self.TYPE_NAME}.{name}` is not supported."
            )

        await self._update(name, value)
        self.clear_cache()

    async def _update(self, name: str, value: Any) -> None:
        raise OperationUnimplementedException(f"Updating `{self.TYPE_NAME}.{name}` is not supported.")

    # Generators -------------------------------------------------------------------------------

    @classmethod
    def node_selection(cls, separator: str = " ") -> str:
        """The selection set used for this type's nodes inside another type's query."""
        return separator.join(cls.IDENTITY_KEYS + (cls.FIELDS.graphql_selection(separator),))

    @classmethod
    def _identity_from(cls, data: Dict[str, Any], caller: Optional["GraphQLEntity"]) -> Dict[str, Any]:
        identity = {}
        for key in cls.IDENTITY:
            if key not in data:
                raise MissingFieldException(key, f"Missing required {cls.TYPE_NAME} field: `{key}`")
            identity[key] = data[key]
        return identity

    @classmethod
    def build(
        cls,
        data: Dict[str, Any],
        caller: Optional["GraphQLEntity"] = None,
        ignore_additional: bool = True,
    ) -> "GraphQLEntity":
        """
        Builds an entity from a node already returned by the API, caching its primitive fields
        without triggering an update.
        """
        verbose(logger, f"Building {cls.TYPE_NAME} from API data: {data}")

        entity = cls(**cls._identity_from(data, caller), client=caller._client if caller else None)
        entity._populate(data, ignore_additional)
        return entity

    @classmethod
    def build_page(
        cls,
        connection: Optional[Dict[str, Any]],
        caller: "GraphQLEntity",
        page_size: int,
    ) -> List["GraphQLEntity"]:
        """Builds entities from a connection's first page, never returning more than `page_size`."""
        if not connection:
            logger.debug(f"No {cls.TYPE_NAME} found for {caller!r}.")
            return []

        count = connection.get('totalCount', 0)
        logger.debug(f"{count} {cls.TYPE_NAME}(s) found for {caller!r} (capped at {page_size}).")

        nodes = [node for node in connection.get('nodes') or [] if node][:page_size]
        return [cls.build(node, caller) for node in nodes]

    @classmethod
    async def fetch_one(cls, caller: "GraphQLEntity") -> Optional["GraphQLEntity"]:
        raise OperationUnimplementedException(
            f"Loading a {cls.TYPE_NAME} from {caller.TYPE_NAME} is not supported."
        )

    @classmethod
    async def fetch_many(cls, caller: "GraphQLEntity", page_size: int = None) -> List["GraphQLEntity"]:
        raise OperationUnimplementedException(
            f"Loading {cls.TYPE_NAME} sets from {caller.TYPE_NAME} is not supported."
        )

    @staticmethod
    async def _execute(caller: "GraphQLEntity", query: GraphQLQuery) -> Any:
        response = await caller.client.graphql(query.text, query.variables)
        return query.descend(response)
