from enum import Enum
from typing import Any


class ValueTypeTag(Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"

    def __str__(self) -> str:
        return self.value

    @property
    def is_container(self) -> bool:
        return self in (ValueTypeTag.ARRAY, ValueTypeTag.OBJECT)

    @classmethod
    def detect(cls, value: Any) -> "ValueTypeTag":
        if value is None:
            return cls.NULL

        # bool is a subclass of int, check it first
        if isinstance(value, bool):
            return cls.BOOLEAN

        if isinstance(value, (int, float)):
            return cls.NUMBER

        if isinstance(value, str):
            return cls.STRING

        if isinstance(value, (list, tuple)):
            return cls.ARRAY

        if isinstance(value, dict):
            return cls.OBJECT

        raise TypeError(f"Not a JSON value: {type(value).__name__}")
