"""Template metadata schemas.

Defines the descriptor shape every resolvable template ships
(``template.json`` or an equivalent YAML/TOML file):
- Template metadata (name, version, project type, ...)
- Substitution variables consumed by the rendering stage
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class VariableType(str, Enum):
    """Kind of value a template variable accepts."""

    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    CHOICE = "choice"


class TemplateVariable(BaseModel):
    """A substitution variable declared by a template."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, description="Placeholder name")
    description: str = Field("", description="Human readable description")
    default: str | None = Field(None, description="Default value, ignored when required")
    required: bool = Field(False, description="Whether the caller must supply a value")
    var_type: VariableType = Field(VariableType.STRING, alias="type")
    options: list[str] = Field(default_factory=list, description="Allowed values for choice")

    @model_validator(mode="before")
    @classmethod
    def _normalize_type(cls, data: Any) -> Any:
        """Accept ``type``/``var_type`` and the ``{"choice": {"options": [...]}}`` form."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        raw = data.pop("var_type", None)
        if "type" in data:
            raw = data["type"]

        if isinstance(raw, dict) and len(raw) == 1:
            kind, payload = next(iter(raw.items()))
            raw = kind
            if isinstance(payload, dict) and "options" in payload and "options" not in data:
                data["options"] = payload["options"]

        if isinstance(raw, str):
            raw = raw.lower()
        if raw is not None:
            data["type"] = raw
        return data

    @field_validator("default", mode="before")
    @classmethod
    def _stringify_default(cls, value: Any) -> Any:
        # JSON descriptors commonly carry booleans and numbers as defaults
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @model_validator(mode="after")
    def _check_choice_options(self) -> "TemplateVariable":
        if self.var_type == VariableType.CHOICE and not self.options:
            raise ValueError(f"Choice variable '{self.name}' must declare at least one option")
        return self

    @property
    def effective_default(self) -> str | None:
        """Default value as seen by consumers (None for required variables)."""
        return None if self.required else self.default


class TemplateMetadata(BaseModel):
    """Metadata describing a resolvable template."""

    name: str = Field(..., min_length=1, description="Template name")
    version: str = Field("0.1.0", description="Template version")
    description: str = Field("", description="Short description")
    author: str = Field("", description="Template author")
    project_type: str = Field(..., min_length=1, description="Project type, e.g. vue or java")
    variables: list[TemplateVariable] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_variables(self) -> "TemplateMetadata":
        seen: set[str] = set()
        for variable in self.variables:
            if variable.name in seen:
                raise ValueError(f"Duplicate variable name: {variable.name}")
            seen.add(variable.name)
        return self

    @property
    def variable_names(self) -> list[str]:
        return [variable.name for variable in self.variables]

    def get_variable(self, name: str) -> TemplateVariable | None:
        for variable in self.variables:
            if variable.name == name:
                return variable
        return None
