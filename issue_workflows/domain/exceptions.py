from typing import List


class WorkflowException(Exception):
    """Base exception for all issue workflow errors."""
    pass

class UnregisteredPropertyException(WorkflowException, TypeError):
    """Raised when assigning a property the entity type does not declare, or does not allow direct assignment of."""
    def __init__(self, type_name: str, prop: str, message: str = None):
        self.type_name = type_name
        self.prop = prop
        super().__init__(message or f"Property `{prop}` cannot be set on a {type_name} GraphQL object.")

class MissingFieldException(WorkflowException, LookupError):
    """Raised when a GraphQL response lacks an expected container key or field."""
    def __init__(self, key: str, message: str = None):
        self.key = key
        super().__init__(message or f"Expected field `{key}` in GraphQL response not found.")

class OperationUnimplementedException(WorkflowException, NotImplementedError):
    """Raised for operations that are knowingly unsupported."""
    pass

class UnknownEntityTypeException(WorkflowException, LookupError):
    """Raised when a relation names an entity type that was never registered."""
    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Entity type `{tag}` is not registered.")

class GraphQLException(WorkflowException):
    """Raised when the GraphQL API answers with an `errors` array."""
    def __init__(self, errors: List[dict]):
        self.errors = errors
        self.messages = [error.get('message', 'Unknown GraphQL error') for error in errors]
        super().__init__(f"GraphQL request failed: {'; '.join(self.messages)}")

class ConfigurationException(WorkflowException):
    """Raised when required workflow configuration is missing."""
    pass
