from enum import Enum
from typing import Annotated, Any, Dict, Iterable, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class TurnRole(str, Enum):
    """Conversation turn roles."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class TextPart(BaseModel):
    """Plain text part of a multimodal turn."""
    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    """Inline base64 image part of a multimodal turn."""
    type: Literal["image"] = "image"
    mime_type: str = "image/jpeg"
    data: str = Field(..., description="Base64-encoded image bytes")

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


ContentPart = Annotated[Union[TextPart, ImagePart], Field(discriminator="type")]


class Turn(BaseModel):
    """One message in a conversation, tagged with a role."""

    model_config = ConfigDict(use_enum_values=True)

    role: TurnRole
    content: Union[str, List[ContentPart]]

    @property
    def is_multimodal(self) -> bool:
        return not isinstance(self.content, str)

    def text(self) -> str:
        """Text-only view of the content; image parts are dropped."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(part.text for part in self.content if isinstance(part, TextPart))

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


def coerce_turns(turns: Iterable[Union[Turn, Dict[str, Any]]]) -> List[Turn]:
    """
    Convert caller-supplied turns into fresh ``Turn`` copies.

    Accepts ``Turn`` instances or plain ``{"role", "content"}`` dicts. The
    caller's objects are never returned, so downstream formatting can not
    mutate them.

    Raises:
        ValueError: If an entry is neither a Turn nor a role/content mapping
    """
    coerced = []
    for turn in turns or []:
        if isinstance(turn, Turn):
            coerced.append(turn.model_copy(deep=True))
        elif isinstance(turn, dict) and "role" in turn and "content" in turn:
            coerced.append(Turn.model_validate({"role": turn["role"], "content": turn["content"]}))
        else:
            raise ValueError(f"Invalid turn format: {type(turn)} - {turn}")
    return coerced
