# voltmatch/repos/codec.py
from enum import Enum
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from voltmatch.core.errors import StoreError

M = TypeVar("M", bound=BaseModel)

# keys the backing store adds on its own (Mongo's primary key)
_PRIVATE_KEYS = ("_id",)

def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value

def to_document(record: BaseModel) -> Dict[str, Any]:
    """Model -> store document. Enums become their string values; datetimes stay native."""
    return _plain(record.model_dump())

def to_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return _plain(fields)

def from_document(model: Type[M], doc: Dict[str, Any]) -> M:
    data = {k: v for k, v in doc.items() if k not in _PRIVATE_KEYS}
    try:
        return model.model_validate(data)
    except PydanticValidationError as ex:
        raise StoreError(f"malformed {model.__name__} document {data.get('id')!r}: {ex}") from ex
