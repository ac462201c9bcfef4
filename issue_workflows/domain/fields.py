import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict

from issue_workflows.domain.exceptions import UnknownEntityTypeException

logger = logging.getLogger(__name__)


class FieldKind(str, Enum):
    IDENTITY = "identity"
    PRIMITIVE = "primitive"
    RELATION_SINGULAR = "relation_singular"
    RELATION_COLLECTION = "relation_collection"


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


# Coercions. GitHub returns null for unset values, so every coercion passes None through.

def to_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)

def to_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)

def to_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)

def to_bool(value: Any) -> Optional[bool]:
    return None if value is None else bool(value)

def to_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))

def to_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    return date.fromisoformat(value)

def to_str_list(value: Any) -> Optional[List[str]]:
    return None if value is None else [str(item) for item in value]

def nested(key: str, coerce: Callable[[Any], Any] = to_str) -> Callable[[Any], Any]:
    """Coerce an object-valued field by pulling a single key out of it."""
    def _coerce(value: Any) -> Any:
        if value is None:
            return None
        return coerce(value.get(key))
    _coerce.__name__ = f"nested_{key}"
    return _coerce


class Field(BaseModel):
    """
    How one field of an entity type is resolved.

    Primitive fields carry a coercion applied to the raw API value; relational fields carry the
    registry tag of the entity type they produce.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = ""
    kind: FieldKind
    api_name: Optional[str] = None
    coerce: Optional[Callable[[Any], Any]] = None
    target: Optional[str] = None
    selection: Optional[str] = None
    page_size: Optional[int] = None

    @property
    def is_primitive(self) -> bool:
        return self.kind == FieldKind.PRIMITIVE

    @property
    def is_relation(self) -> bool:
        return self.kind in (FieldKind.RELATION_SINGULAR, FieldKind.RELATION_COLLECTION)

    def graphql(self) -> str:
        """The field as it appears inside a query's selection set."""
        if self.selection:
            return f"{self.api_name} {{ {self.selection} }}"
        return self.api_name


def primitive(coerce: Callable[[Any], Any] = to_str, api_name: str = None, selection: str = None) -> Field:
    return Field(kind=FieldKind.PRIMITIVE, coerce=coerce, api_name=api_name, selection=selection)

def singular(target: str) -> Field:
    return Field(kind=FieldKind.RELATION_SINGULAR, target=target)

def collection(target: str, page_size: int = None) -> Field:
    return Field(kind=FieldKind.RELATION_COLLECTION, target=target, page_size=page_size)


class FieldMap:
    """
    Static, ordered declaration of the fields an entity type exposes.

    Unregistered names are simply absent: `get` returns None rather than raising.
    """

    def __init__(self, fields: Dict[str, Field]):
        resolved = {}
        for name, field in fields.items():
            resolved[name] = field.model_copy(update={
                'name': name,
                'api_name': field.api_name or to_camel(name),
            })
        self._fields = resolved
        self._by_api_name = {field.api_name: field for field in resolved.values()}

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def get(self, name: str) -> Optional[Field]:
        return self._fields.get(name)

    def by_api_name(self, api_name: str) -> Optional[Field]:
        return self._by_api_name.get(api_name)

    def is_primitive(self, name: str) -> bool:
        field = self._fields.get(name)
        return field is not None and field.is_primitive

    def primitive_fields(self) -> List[Field]:
        return [field for field in self._fields.values() if field.is_primitive]

    def relations(self) -> List[Field]:
        return [field for field in self._fields.values() if field.is_relation]

    def graphql_selection(self, separator: str = "\n") -> str:
        return separator.join(field.graphql() for field in self.primitive_fields())

    def merge(self, other: "FieldMap") -> "FieldMap":
        combined = {name: self._fields[name] for name in self._fields}
        combined.update({name: other.get(name) for name in other})
        return FieldMap(combined)


class EntityRegistry:
    """
    Central map of entity type tags to entity classes.

    Entity types reference each other by tag, so declaration order does not matter: classes
    register themselves as they are defined, and `bind` later checks that every relation target
    exists.
    """

    def __init__(self):
        self._types: Dict[str, type] = {}
        self._bound = False

    def register(self, tag: str) -> Callable[[type], type]:
        def _register(cls: type) -> type:
            cls.TYPE_NAME = tag
            self._types[tag] = cls
            self._bound = False
            logger.debug(f"Registered entity type `{tag}`.")
            return cls
        return _register

    def bind(self) -> None:
        for tag, cls in self._types.items():
            for field in cls.FIELDS.relations():
                if field.target not in self._types:
                    raise UnknownEntityTypeException(field.target)
        self._bound = True
        logger.debug(f"Bound {len(self._types)} entity types: {', '.join(sorted(self._types))}.")

    @property
    def bound(self) -> bool:
        return self._bound

    def resolve(self, tag: str) -> type:
        try:
            return self._types[tag]
        except KeyError:
            raise UnknownEntityTypeException(tag) from None

    def __contains__(self, tag: str) -> bool:
        return tag in self._types


registry = EntityRegistry()
