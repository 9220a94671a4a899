"""Tests for pydantic error flattening."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from dockstage.config.validator import flatten_pydantic_errors
from dockstage.models.build import BuildConfig


def _errors(**data: object) -> list[str]:
    with pytest.raises(PydanticValidationError) as excinfo:
        BuildConfig(**data)
    return flatten_pydantic_errors(excinfo.value)


class TestFlattenPydanticErrors:
    """Tests for flatten_pydantic_errors()."""

    def test_missing_fields(self) -> None:
        """Test that missing required fields are named."""
        messages = _errors()

        assert "Field 'directory' is required" in messages
        assert "Field 'image_name' is required" in messages

    def test_unknown_field(self) -> None:
        """Test that unknown options are named."""
        messages = _errors(directory="d", image_name="app", tags=["v1"])

        assert messages == ["Field 'tags' is not a recognised option"]

    def test_nested_list_location(self) -> None:
        """Test that list positions are rendered with brackets."""
        messages = _errors(
            directory="d",
            image_name="app",
            resources=[{"directory": "lib", "target_path": "../outside"}],
        )

        assert len(messages) == 1
        assert messages[0].startswith("Field 'resources[0].target_path'")
        assert "'../outside'" in messages[0]

    def test_type_error(self) -> None:
        """Test that type errors include the pydantic message."""
        messages = _errors(directory="d", image_name="app", push="maybe")

        assert messages[0].startswith("Field 'push':")
