# quizly/models/types.py
import json
from typing import List

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.types import Text, TypeDecorator

from quizly.core.exceptions import DatabaseError


class JSONList(TypeDecorator):
    """
    A list stored as JSON text.

    Values are validated against ``List[item_type]`` when written and when
    read back, so a corrupt row fails with DatabaseError instead of handing a
    malformed list to the services.
    """

    impl = Text
    cache_ok = True

    def __init__(self, item_type: type, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.item_type = item_type
        self._adapter = TypeAdapter(List[item_type])

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        try:
            items = self._adapter.validate_python(value, strict=True)
        except PydanticValidationError as e:
            raise DatabaseError(
                f"Refusing to store malformed {self.item_type.__name__} list", e
            ) from e
        return json.dumps(items)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            return self._adapter.validate_json(value, strict=True)
        except PydanticValidationError as e:
            raise DatabaseError(
                f"Stored {self.item_type.__name__} list is corrupt", e
            ) from e
