"""Conversation model — load YAML conversation files into event lists.

A conversation file is either a list of messages or a mapping with a
``messages`` list:

    id: profile
    title: About me
    messages:
      - sender: other
        text: "Hey! What do you do?"
      - sender: self
        text: "I build things. Today is {currentDayOfWeek}."
        reaction: "👍"
      - sender: self
        kind: chart
        chart:
          type: bar
          title: Languages
          items:
            - {label: Python, value: 62}
            - {label: Go, value: 21}

Placeholders:
  {key} — replaced from the substitution map; unknown keys are left verbatim
"""

from __future__ import annotations

import datetime
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from chat_engine.config import CONVERSATIONS_DIR
from chat_engine.errors import ContentError

logger = logging.getLogger(__name__)


PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")

SUPPORTED_CHART_TYPES = ("bar", "donut")
CHART_TYPE_ALIASES = {"horizontalBar": "bar", "horizontal_bar": "bar"}


class Sender(Enum):
    """The two parties of the conversation."""

    SELF = "self"
    OTHER = "other"

    @property
    def is_self(self) -> bool:
        return self is Sender.SELF


SENDER_ALIASES: dict[str, Sender] = {
    "a": Sender.SELF,
    "self": Sender.SELF,
    "me": Sender.SELF,
    "b": Sender.OTHER,
    "other": Sender.OTHER,
    "visitor": Sender.OTHER,
    "them": Sender.OTHER,
}


class ContentKind(Enum):
    TEXT = "text"
    CHART = "chart"


@dataclass(frozen=True)
class ChartItem:
    label: str
    value: float = 0.0
    color: Optional[str] = None


@dataclass(frozen=True)
class ChartData:
    """Chart payload of a chart event.

    ``type`` is normalized to ``bar`` or ``donut`` when recognized; any other
    value is kept verbatim and the event renders nothing.
    """

    type: str
    items: tuple[ChartItem, ...] = ()
    title: str = ""
    center_text: str = ""
    max_value: Optional[float] = None
    value_suffix: str = ""

    @property
    def supported(self) -> bool:
        return self.type in SUPPORTED_CHART_TYPES

    @property
    def scale_max(self) -> float:
        """Value that maps to a full-width bar."""
        if self.max_value and self.max_value > 0:
            return self.max_value
        peak = max((item.value for item in self.items), default=0.0)
        return peak if peak > 0 else 100.0

    @property
    def total(self) -> float:
        return sum(max(0.0, item.value) for item in self.items)


@dataclass(frozen=True)
class ConversationEvent:
    """One message of the conversation, as authored."""

    sender: Sender
    kind: ContentKind = ContentKind.TEXT
    text: str = ""
    chart: Optional[ChartData] = None
    reaction: Optional[str] = None

    @property
    def is_self(self) -> bool:
        return self.sender.is_self

    @property
    def is_chart(self) -> bool:
        return self.kind is ContentKind.CHART and self.chart is not None


@dataclass
class Conversation:
    """A loaded conversation file."""

    id: str
    title: str = ""
    events: list[ConversationEvent] = field(default_factory=list)
    placeholders: dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.events)


# ── Placeholder expansion ─────────────────────────────────────────────────

def expand_placeholders(text: str, mapping: Optional[Mapping[str, Any]]) -> str:
    """Replace {key} tokens from ``mapping``. Unknown keys stay verbatim."""
    if not text or not mapping:
        return text

    def replacer(match: re.Match) -> str:
        key = match.group(1)
        if key in mapping:
            return str(mapping[key])
        return match.group(0)

    return PLACEHOLDER_RE.sub(replacer, text)


def builtin_placeholders(now: Optional[datetime.datetime] = None) -> dict[str, str]:
    """Date placeholders that are always available."""
    now = now or datetime.datetime.now()
    return {
        "currentDayOfWeek": now.strftime("%A"),
        "currentDate": f"{now.strftime('%B')} {now.day}, {now.year}",
        "currentYear": str(now.year),
    }


# ── Parsing ───────────────────────────────────────────────────────────────

def _parse_value(raw: Any, where: str) -> float:
    if isinstance(raw, bool):
        raw = None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip().rstrip("%"))
        except ValueError:
            pass
    logger.warning("%s: value %r is not a number, using 0", where, raw)
    return 0.0


def _parse_sender(raw: Any, where: str) -> Sender:
    key = str(raw).strip().lower() if raw is not None else ""
    if key in SENDER_ALIASES:
        return SENDER_ALIASES[key]
    logger.warning("%s: unknown sender %r, treating as other", where, raw)
    return Sender.OTHER


def _parse_chart(data: Any, where: str) -> ChartData:
    if not isinstance(data, dict):
        logger.warning("%s: chart payload must be a mapping, rendering an empty chart", where)
        data = {}

    chart_type = str(data.get("type", "bar"))
    chart_type = CHART_TYPE_ALIASES.get(chart_type, chart_type)

    raw_items = data.get("items") or []
    if not isinstance(raw_items, list):
        logger.warning("%s: chart items must be a list, ignoring them", where)
        raw_items = []

    items = []
    for i, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            logger.warning("%s: chart item %d is not a mapping, skipping", where, i)
            continue
        if "value" not in raw:
            logger.warning("%s: chart item %d has no value, using 0", where, i)
            value = 0.0
        else:
            value = _parse_value(raw["value"], f"{where} item {i}")
        items.append(
            ChartItem(
                label=str(raw.get("label", "")),
                value=value,
                color=raw.get("color") or None,
            )
        )

    max_value = data.get("max_value", data.get("maxValue"))
    if max_value is not None:
        max_value = _parse_value(max_value, f"{where} max_value") or None

    return ChartData(
        type=chart_type,
        items=tuple(items),
        title=str(data.get("title") or ""),
        center_text=str(data.get("center_text", data.get("centerText")) or ""),
        max_value=max_value,
        value_suffix=str(data.get("value_suffix", data.get("valueSuffix")) or ""),
    )


def parse_event(data: Any, index: int = 0) -> ConversationEvent:
    """Parse a single message mapping. Malformed fields degrade to safe defaults."""
    where = f"message {index}"
    if not isinstance(data, dict):
        logger.warning("%s: expected a mapping, got %s", where, type(data).__name__)
        return ConversationEvent(sender=Sender.OTHER, text=str(data) if data is not None else "")

    sender = _parse_sender(data.get("sender"), where)
    kind_name = str(data.get("kind", data.get("contentType", ""))).lower()
    chart_data = data.get("chart", data.get("chartData"))
    reaction = data.get("reaction") or None
    if reaction is not None:
        reaction = str(reaction)

    if kind_name == "chart" or (not kind_name and chart_data is not None):
        return ConversationEvent(
            sender=sender,
            kind=ContentKind.CHART,
            chart=_parse_chart(chart_data, where),
            reaction=reaction,
        )

    text = data.get("text")
    if text is None:
        logger.warning("%s: missing text, rendering an empty bubble", where)
        text = ""

    return ConversationEvent(sender=sender, text=str(text), reaction=reaction)


def parse_conversation(data: Any, source: str = "<unknown>") -> Conversation:
    """Build a Conversation from already-decoded YAML/JSON data."""
    if isinstance(data, list):
        return Conversation(id=Path(source).stem, events=[parse_event(m, i) for i, m in enumerate(data)])

    if not isinstance(data, dict):
        raise ContentError(f"Conversation must be a list or mapping of messages: {source}")

    messages = data.get("messages", [])
    if not isinstance(messages, list):
        raise ContentError(f"'messages' must be a list: {source}")

    placeholders = data.get("placeholders") or {}
    if not isinstance(placeholders, dict):
        logger.warning("%s: placeholders must be a mapping, ignoring them", source)
        placeholders = {}

    return Conversation(
        id=str(data.get("id", Path(source).stem)),
        title=str(data.get("title", "")),
        events=[parse_event(m, i) for i, m in enumerate(messages)],
        placeholders={str(k): str(v) for k, v in placeholders.items()},
    )


def load_conversation(name_or_path: str, conversations_dir: Optional[Path] = None) -> Conversation:
    """Load a conversation from a YAML (or JSON) file.

    Args:
        name_or_path: Conversation name (looked up in conversations_dir) or direct file path.
        conversations_dir: Directory to search for conversation files.
    """
    conversations_dir = conversations_dir or CONVERSATIONS_DIR
    path = Path(name_or_path)

    if not path.exists():
        path = conversations_dir / f"{name_or_path}.yaml"

    if not path.exists():
        available = list_conversations(conversations_dir)
        raise FileNotFoundError(
            f"Conversation '{name_or_path}' not found. "
            f"Available: {', '.join(available) or 'none'}"
        )

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ContentError(f"Invalid conversation file {path}: {e}") from e

    return parse_conversation(data, source=str(path))


def list_conversations(conversations_dir: Optional[Path] = None) -> list[str]:
    """List available conversation names."""
    conversations_dir = conversations_dir or CONVERSATIONS_DIR
    if not conversations_dir.exists():
        return []
    return sorted(p.stem for p in conversations_dir.glob("*.yaml"))


# ── Built-in default conversation ─────────────────────────────────────────

def generate_default_conversation() -> Conversation:
    """A short introduction used when no conversation file is given."""
    events = [
        ConversationEvent(Sender.OTHER, text="Hey! Happy {currentDayOfWeek} 👋"),
        ConversationEvent(Sender.SELF, text="Hi! Thanks for stopping by my profile."),
        ConversationEvent(Sender.OTHER, text="What have you been working on lately?"),
        ConversationEvent(
            Sender.SELF,
            text="Mostly small tools that turn data into pictures, like this chat.",
            reaction="🔥",
        ),
        ConversationEvent(Sender.OTHER, text="Nice. Which languages do you use?"),
        ConversationEvent(
            Sender.SELF,
            kind=ContentKind.CHART,
            chart=ChartData(
                type="bar",
                title="Languages this year",
                items=(
                    ChartItem("Python", 58, "#3572A5"),
                    ChartItem("TypeScript", 24, "#3178C6"),
                    ChartItem("Go", 12, "#00ADD8"),
                    ChartItem("Shell", 6, "#89E051"),
                ),
                max_value=100,
                value_suffix="%",
            ),
        ),
        ConversationEvent(Sender.OTHER, text="Cool, thanks for sharing!", reaction="❤️"),
    ]
    return Conversation(id="default", title="Default introduction", events=events)
