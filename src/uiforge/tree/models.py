"""UI tree data models."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# Kinds that accept an "inside" drop
CONTAINER_KINDS: frozenset[str] = frozenset(
    {"div", "section", "header", "footer", "ul", "nav", "card", "form"}
)

# Kinds rendered without children
VOID_KINDS: frozenset[str] = frozenset({"img", "input", "hr", "br", "textarea"})


def is_container_kind(kind: str) -> bool:
    """Check whether a kind may receive an inside insertion."""
    return kind in CONTAINER_KINDS


def _scalar_to_str(v: Any) -> Any:
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


def _coerce_attributes(v: Any) -> Any:
    if v is None:
        return {}
    if not isinstance(v, dict):
        raise ValueError("attributes must be a mapping")
    return {str(key): value if isinstance(value, str) else str(value) for key, value in v.items()}


class Node(BaseModel):
    """One element of the generated interface. Children are exclusively owned."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    kind: str = Field(..., validation_alias=AliasChoices("kind", "type"))
    style_tokens: str = Field(
        default="", validation_alias=AliasChoices("style_tokens", "styleTokens", "styles")
    )
    content: str | None = Field(default=None)
    attributes: dict[str, str] = Field(default_factory=dict)
    children: list["Node"] = Field(default_factory=list)

    @field_validator("attributes", mode="before")
    @classmethod
    def _attributes(cls, v: Any) -> Any:
        return _coerce_attributes(v)

    def clone(self) -> "Node":
        """Deep, fully independent copy."""
        return self.model_copy(deep=True)

    @property
    def is_container(self) -> bool:
        return is_container_kind(self.kind)

    @property
    def is_void(self) -> bool:
        return self.kind in VOID_KINDS

    def to_wire(self) -> dict[str, Any]:
        """Nested camelCase representation used for export."""
        wire: dict[str, Any] = {"id": self.id, "type": self.kind, "styles": self.style_tokens}
        if self.content is not None:
            wire["content"] = self.content
        if self.attributes:
            wire["attributes"] = dict(self.attributes)
        wire["children"] = [child.to_wire() for child in self.children]
        return wire


Node.model_rebuild()


class FlatNodeDescriptor(BaseModel):
    """
    Wire-shaped record from the generation stream.

    Accepts both the documented field names (``parentId``, ``kind``,
    ``styleTokens``) and the ones emitted by the model prompts
    (``type``, ``styles``).
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    parent_id: str | None = Field(
        default=None, validation_alias=AliasChoices("parent_id", "parentId")
    )
    kind: str = Field(..., min_length=1, validation_alias=AliasChoices("kind", "type"))
    style_tokens: str = Field(
        default="", validation_alias=AliasChoices("style_tokens", "styleTokens", "styles")
    )
    content: str | None = Field(default=None)
    attributes: dict[str, str] = Field(default_factory=dict)

    @field_validator("id", "content", mode="before")
    @classmethod
    def _scalars(cls, v: Any) -> Any:
        return _scalar_to_str(v)

    @field_validator("parent_id", mode="before")
    @classmethod
    def _parent(cls, v: Any) -> Any:
        # Models emit null, "", and the string "null" for the root
        if v is None or v == "" or v == "null":
            return None
        return _scalar_to_str(v)

    @field_validator("style_tokens", mode="before")
    @classmethod
    def _styles(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("attributes", mode="before")
    @classmethod
    def _attributes(cls, v: Any) -> Any:
        return _coerce_attributes(v)

    @property
    def is_root_candidate(self) -> bool:
        return self.parent_id is None

    def to_node(self) -> Node:
        """Materialize a fresh node with no children."""
        return Node(
            id=self.id,
            kind=self.kind,
            style_tokens=self.style_tokens,
            content=self.content,
            attributes=dict(self.attributes),
        )


class NodePatch(BaseModel):
    """
    Partial update for a node.

    Only fields explicitly provided are applied. ``id`` and ``children``
    are structural and never patchable; they land in ``model_extra`` with
    any other unknown key.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    kind: str = Field(default="", min_length=1, validation_alias=AliasChoices("kind", "type"))
    style_tokens: str = Field(
        default="", validation_alias=AliasChoices("style_tokens", "styleTokens", "styles")
    )
    content: str | None = Field(default=None)
    attributes: dict[str, str] = Field(default_factory=dict)

    @field_validator("attributes", mode="before")
    @classmethod
    def _attributes(cls, v: Any) -> Any:
        return _coerce_attributes(v)

    def updates(self) -> dict[str, Any]:
        """Explicitly provided field values, keyed by field name."""
        return self.model_dump(include=set(type(self).model_fields), exclude_unset=True)

    @property
    def ignored(self) -> list[str]:
        """Keys that were supplied but are not patchable."""
        return sorted(self.model_extra or {})
