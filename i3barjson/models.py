"""Pydantic data models for the i3bar protocol: header, blocks and click events.

See: https://i3wm.org/docs/i3bar-protocol.html
"""

import json
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field


# Enumerations

class Align(str, Enum):
    """Text alignment inside a block wider than its text."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class Markup(str, Enum):
    """Markup dialect of full_text / short_text."""
    NONE = "none"
    PANGO = "pango"


class MouseButton(Enum):
    """Mouse button codes from i3bar protocol."""
    LEFT = 1
    MIDDLE = 2
    RIGHT = 3
    SCROLL_UP = 4
    SCROLL_DOWN = 5


def marshal_indent(data: Any) -> str:
    """Pretty-print decoded wire data with 4-space indentation."""
    return json.dumps(data, indent=4, ensure_ascii=False)


def _omit_empty(data: Dict[str, Any], keep: FrozenSet[str], keep_unless_none: FrozenSet[str] = frozenset()) -> Dict[str, Any]:
    """Drop empty values the way i3bar expects optional keys to be absent.

    None, "", 0 and False are dropped unless the key is in ``keep``. Keys in
    ``keep_unless_none`` are dropped only when None.
    """
    result = {}
    for key, value in data.items():
        if key in keep:
            result[key] = value
        elif key in keep_unless_none:
            if value is not None:
                result[key] = value
        elif value is not None and value != "" and value is not False and not (type(value) is int and value == 0):
            result[key] = value
    return result


_BLOCK_ALWAYS = frozenset({"full_text", "separator"})
_BLOCK_BORDERS = frozenset({"border_top", "border_right", "border_bottom", "border_left"})


class Header(BaseModel):
    """Protocol preamble, written once before the status line array."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(..., ge=1, description="Protocol version (currently 1)")
    stop_signal: Optional[int] = Field(None, ge=0, description="Signal sent by the bar to pause updates")
    cont_signal: Optional[int] = Field(None, ge=0, description="Signal sent by the bar to resume updates")
    click_events: bool = Field(False, description="Ask the bar to deliver click events on stdin")

    def to_json(self) -> dict:
        """Convert to i3bar protocol JSON format, omitting unset capabilities."""
        return _omit_empty(self.model_dump(mode="json"), keep=frozenset({"version"}))

    def __str__(self) -> str:
        return marshal_indent(self.to_json())


class Block(BaseModel):
    """A single status block in the i3bar protocol format.

    Empty optional values are left out of the JSON output. ``full_text`` and
    ``separator`` are always written.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    # Required fields
    full_text: str

    # Optional fields
    short_text: Optional[str] = None      # Abbreviated text for small displays
    color: Optional[str] = None           # Hex color code (#RRGGBB)
    background: Optional[str] = None      # Background color
    border: Optional[str] = None          # Border color
    border_top: Optional[int] = None      # Border width (pixels), 0 hides the border
    border_right: Optional[int] = None
    border_bottom: Optional[int] = None
    border_left: Optional[int] = None
    min_width: Optional[Union[int, str]] = None  # Pixels, or a string whose width is used
    align: Optional[Align] = None
    name: Optional[str] = None            # Echoed back in click events
    instance: Optional[str] = None        # Echoed back in click events
    urgent: bool = False
    separator: bool = False
    separator_block_width: Optional[int] = None
    markup: Optional[Markup] = None

    def to_json(self) -> dict:
        """Convert to i3bar protocol JSON format."""
        return _omit_empty(self.model_dump(mode="json"), keep=_BLOCK_ALWAYS, keep_unless_none=_BLOCK_BORDERS)

    def __str__(self) -> str:
        return marshal_indent(self.to_json())


StatusLine = List[Block]


def pretty(status_line: Sequence[Block]) -> str:
    """Pretty-print a status line for debugging."""
    return marshal_indent([block.to_json() for block in status_line])


class Click(BaseModel):
    """A click event from the bar (i3bar protocol).

    Sent by the bar on the producer's stdin when click_events is enabled in
    the header. Reading that stream is left to the application.
    """

    name: Optional[str] = None
    instance: Optional[str] = None
    x: int
    y: int
    button: int
    relative_x: Optional[int] = None
    relative_y: Optional[int] = None
    output_x: Optional[int] = None
    output_y: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    modifiers: List[str] = Field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> 'Click':
        """Parse one decoded click event object.

        Raises:
            pydantic.ValidationError: If required coordinates or button are missing
        """
        return cls.model_validate(data)

    @property
    def mouse_button(self) -> Optional[MouseButton]:
        """The MouseButton for this click, or None for extra buttons."""
        try:
            return MouseButton(self.button)
        except ValueError:
            return None

    def __str__(self) -> str:
        return marshal_indent(self.model_dump(mode="json"))
