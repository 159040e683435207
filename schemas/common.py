from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

from services.validators import sanitize_input


def _clean_text(value):
    # roll number / ids kabhi kabhi number ban ke aate hain
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    return sanitize_input(value)


SanitizedStr = Annotated[str, BeforeValidator(_clean_text)]
RequiredStr = Annotated[str, BeforeValidator(_clean_text), StringConstraints(min_length=1)]


class CamelModel(BaseModel):
    """Request bodies arrive in camelCase; fields stay snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
