"""
Vault entities and prompt payloads.

``Category`` and ``PasswordEntry`` mirror rows of the ``categories`` and
``passwords`` tables and accept any stored value, ciphertext included.
Input coming from the user goes through ``Credentials`` or one of the
``Payload`` variants instead, which enforce the required fields.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationInfo,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from .exceptions import ValidationError

ALL_CATEGORY_ID = 0
UNCATEGORIZED_ID = -1


def _not_blank(value: str, field: str) -> str:
    if not value or not value.strip():
        raise PydanticCustomError(
            "blank", "{field} cannot be blank", {"field": field},
        )
    return value


def _collect(err: PydanticValidationError) -> list[str]:
    messages = []
    for error in err.errors():
        field = str(error["loc"][-1]) if error["loc"] else "input"
        if error["type"] == "missing":
            messages.append(f"{field} cannot be blank")
        elif error["type"] == "blank":
            messages.append(error["msg"])
        else:
            messages.append(f"{field}: {error['msg']}")
    return messages


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class Category(BaseModel):
    id: int = 0
    name: str = ""


class PasswordEntry(BaseModel):
    """One credential record.

    ``email`` and ``password`` hold hex ciphertext while stored and
    plaintext once decrypted; ``name`` is the OAEP label for both.
    """

    id: int = 0
    category_id: Optional[int] = None
    name: str = ""
    email: str = ""
    username: str = ""
    password: str = ""


# ---------------------------------------------------------------------------
# User input
# ---------------------------------------------------------------------------

class Credentials(BaseModel):
    """Username and master password typed at the login view."""

    model_config = ConfigDict(validate_default=True)

    username: str = ""
    password: str = ""

    @field_validator("username", "password")
    @classmethod
    def required(cls, v: str, info: ValidationInfo) -> str:
        return _not_blank(v, info.field_name)

    @classmethod
    def parse(cls, username: str, password: str) -> "Credentials":
        """Build validated credentials.

        Raises:
            ValidationError: If either field is empty.
        """
        try:
            return cls(username=username, password=password)
        except PydanticValidationError as err:
            raise ValidationError(_collect(err)) from err


class CategoryPayload(BaseModel):
    model_config = ConfigDict(validate_default=True)

    kind: Literal["category"] = "category"
    id: int = 0
    name: str = ""

    @field_validator("name")
    @classmethod
    def required(cls, v: str, info: ValidationInfo) -> str:
        return _not_blank(v, info.field_name)

    def to_entity(self) -> Category:
        return Category(id=self.id, name=self.name)


class PasswordPayload(BaseModel):
    model_config = ConfigDict(validate_default=True)

    kind: Literal["password"] = "password"
    id: int = 0
    category_id: Optional[int] = None
    name: str = ""
    email: str = ""
    username: str = ""
    password: str = ""

    @field_validator("name", "email", "password")
    @classmethod
    def required(cls, v: str, info: ValidationInfo) -> str:
        return _not_blank(v, info.field_name)

    @field_validator("category_id")
    @classmethod
    def real_category(cls, v: Optional[int]) -> Optional[int]:
        """Synthetic list ids (All, Uncategorized) mean no category."""
        if v is not None and v <= 0:
            return None
        return v

    def to_entity(self) -> PasswordEntry:
        return PasswordEntry(**self.model_dump(exclude={"kind"}))


Payload = Annotated[
    Union[CategoryPayload, PasswordPayload], Field(discriminator="kind"),
]

_payload_adapter: TypeAdapter = TypeAdapter(Payload)


def parse_payload(data: dict) -> Union[CategoryPayload, PasswordPayload]:
    """Validate prompt input into the matching payload variant.

    Args:
        data: Prompt fields, including ``kind`` ("category" or "password").

    Raises:
        ValidationError: On missing or blank required fields.
    """
    try:
        return _payload_adapter.validate_python(data)
    except PydanticValidationError as err:
        raise ValidationError(_collect(err)) from err
