"""Validation helpers for dockstage configuration."""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError


def _field_path(loc: tuple[int | str, ...]) -> str:
    # resources.0.directory -> resources[0].directory
    path = ""
    for item in loc:
        if isinstance(item, int):
            path += f"[{item}]"
        else:
            path += f".{item}" if path else str(item)
    return path or "config"


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Turn a pydantic ValidationError into one readable line per problem.

    Args:
        exc: Pydantic ValidationError raised while building BuildConfig

    Returns:
        Messages such as "Field 'image_name' is required"

    Example:
        >>> from pydantic import BaseModel, ValidationError
        >>> class Model(BaseModel):
        ...     image_name: str
        >>> try:
        ...     Model()
        ... except ValidationError as e:
        ...     flatten_pydantic_errors(e)
        ["Field 'image_name' is required"]
    """
    messages: list[str] = []
    for error in exc.errors():
        field_path = _field_path(tuple(error.get("loc", ())))
        error_type = error.get("type", "")

        if error_type == "missing":
            messages.append(f"Field '{field_path}' is required")
        elif error_type == "extra_forbidden":
            messages.append(f"Field '{field_path}' is not a recognised option")
        elif error_type == "value_error":
            messages.append(
                f"Field '{field_path}': {error.get('msg', 'invalid value')} "
                f"(received: {error.get('input')!r})"
            )
        else:
            msg = error.get("msg", "invalid value")
            messages.append(f"Field '{field_path}': {msg}")

    return messages or ["Validation failed with unknown error"]
