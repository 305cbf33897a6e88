"""
Message formatting module.

Turns the caller's conversation into the shape a backend accepts: a single
leading system turn, optional strict role alternation, text-only flattening
for backends without image input, and single-prompt rendering for
completion-style endpoints. Every function here works on copies; the
caller's turns are never mutated.
"""

import base64
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ...config.constants import FILLER_TURN_CONTENT, SYSTEM_TURN_PREFIX
from ...models.conversation_types import ImagePart, TextPart, Turn, TurnRole, coerce_turns


class AlternationPolicy(str, Enum):
    """How strictly user/assistant roles must alternate."""
    RELAXED = "relaxed"
    STRICT = "strict"


class MessageFormatter:
    """
    Normalizes a turn sequence plus system message.

    ``RELAXED`` (the default) keeps consecutive same-role turns as they are.
    ``STRICT`` rewrites the sequence so that it starts with a user turn and
    roles alternate, for backends that reject anything else.
    """

    def __init__(self, alternation: AlternationPolicy = AlternationPolicy.RELAXED,
                 text_only: bool = False):
        self.alternation = AlternationPolicy(alternation)
        self.text_only = text_only

    def format(self, turns: Iterable[Union[Turn, dict]], system_message: Optional[str] = None) -> List[Turn]:
        """
        Format turns for a request.

        Args:
            turns: Conversation in order, ``Turn`` objects or role/content dicts
            system_message: Instructions for the leading system turn

        Returns:
            A new list of turns with at most one system turn, at the head
        """
        body = coerce_turns(turns)

        head: Optional[Turn] = None
        if body and body[0].role == TurnRole.SYSTEM.value:
            head = body.pop(0)
            if not head.text().strip():
                head = None
        if head is None and system_message:
            head = Turn(role=TurnRole.SYSTEM, content=system_message)

        if self.text_only:
            body = [flatten_turn(turn) for turn in body]
        if self.alternation == AlternationPolicy.STRICT:
            body = strict_alternation(body)
        else:
            body = [t for t in body if not (t.role == TurnRole.SYSTEM.value and not t.text().strip())]

        return ([head] if head is not None else []) + body


def split_system(turns: Sequence[Turn]) -> Tuple[Optional[str], List[Turn]]:
    """
    Separate the leading system turns for backends that take them out of band.

    Consecutive system turns at the head are joined with a blank line, in
    order; blank ones are skipped. Later system turns stay in the body.
    """
    head = 0
    while head < len(turns) and turns[head].role == TurnRole.SYSTEM.value:
        head += 1
    texts = [turn.text() for turn in turns[:head] if turn.text().strip()]
    return ("\n\n".join(texts) or None), list(turns[head:])


def flatten_turn(turn: Turn) -> Turn:
    """Text-only copy of a turn; image parts are dropped."""
    if not turn.is_multimodal:
        return turn
    return Turn(role=turn.role, content=turn.text())


def strict_alternation(turns: List[Turn]) -> List[Turn]:
    """
    Rewrite turns so roles strictly alternate, starting with user.

    System turns become user turns prefixed ``SYSTEM: ``, consecutive user
    turns are merged with a newline and consecutive assistant turns are
    separated by a filler user turn.
    """
    messages: List[Turn] = []
    for turn in turns:
        if turn.role == TurnRole.SYSTEM.value:
            turn = Turn(role=TurnRole.USER, content=SYSTEM_TURN_PREFIX + turn.text())
        if not turn.text().strip() and not turn.is_multimodal:
            continue

        if messages and messages[-1].role == turn.role:
            if turn.role == TurnRole.ASSISTANT.value:
                messages.append(Turn(role=TurnRole.USER, content=FILLER_TURN_CONTENT))
            else:
                messages[-1] = _merge_user_turns(messages[-1], turn)
                continue
        messages.append(turn)

    if messages and messages[0].role != TurnRole.USER.value:
        messages.insert(0, Turn(role=TurnRole.USER, content=FILLER_TURN_CONTENT))
    return messages


def _merge_user_turns(first: Turn, second: Turn) -> Turn:
    if not first.is_multimodal and not second.is_multimodal:
        return Turn(role=TurnRole.USER, content=f"{first.content}\n{second.content}")
    parts = _as_parts(first) + _as_parts(second)
    return Turn(role=TurnRole.USER, content=parts)


def _as_parts(turn: Turn) -> List[Union[TextPart, ImagePart]]:
    if isinstance(turn.content, str):
        return [TextPart(text=turn.content)]
    return list(turn.content)


def append_image_turn(turns: Iterable[Union[Turn, dict]], prompt_text: str,
                      image: Union[bytes, str], mime_type: str = "image/jpeg") -> List[Turn]:
    """
    Copy ``turns`` and append a user turn carrying text and one image.

    Args:
        turns: Existing conversation
        prompt_text: Text that accompanies the image
        image: Raw image bytes or an already base64-encoded string
        mime_type: Image MIME type

    Returns:
        A new list; the input sequence is left untouched
    """
    if isinstance(image, (bytes, bytearray)):
        data = base64.b64encode(bytes(image)).decode("ascii")
    else:
        data = image
    copied = coerce_turns(turns)
    copied.append(Turn(
        role=TurnRole.USER,
        content=[TextPart(text=prompt_text), ImagePart(mime_type=mime_type, data=data)],
    ))
    return copied


def to_single_prompt(turns: Iterable[Union[Turn, dict]], stop_seq: str = "",
                     system: Optional[str] = None, model_nickname: str = "assistant") -> str:
    """
    Render a conversation as one completion prompt.

    Each turn becomes ``role: content`` followed by the stop sequence. The
    prompt ends with an open ``assistant:`` line unless the last turn is
    already the model's.
    """
    prompt = f"{system}{stop_seq}" if system else ""
    role = ""
    for turn in coerce_turns(turns):
        role = model_nickname if turn.role == TurnRole.ASSISTANT.value else turn.role
        prompt += f"{role}: {turn.text()}{stop_seq}"
    if role != model_nickname:
        prompt += f"{model_nickname}: "
    return prompt
