"""
Design document ("blueprint") model.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any

from ..errors import InvalidInputError


@dataclass
class NamedEntry:
    """Actor, enemy, item or map entry."""
    id: str
    name: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "description": self.description}


@dataclass
class Quest:
    id: str
    title: str
    objective: str
    steps: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "objective": self.objective, "steps": list(self.steps)}


@dataclass
class Story:
    tagline: str
    summary: str

    def to_dict(self) -> Dict[str, str]:
        return {"tagline": self.tagline, "summary": self.summary}


@dataclass
class DesignDocument:
    """
    A complete game design document.

    Produced whole by one structured generation and replaced whole on
    adjustment; ids are unique within each list.
    """
    title: str
    story: Story
    actors: List[NamedEntry] = field(default_factory=list)
    enemies: List[NamedEntry] = field(default_factory=list)
    items: List[NamedEntry] = field(default_factory=list)
    maps: List[NamedEntry] = field(default_factory=list)
    quests: List[Quest] = field(default_factory=list)

    NAMED_SECTIONS = ("actors", "enemies", "items", "maps")

    @classmethod
    def from_dict(cls, data: Any) -> "DesignDocument":
        """
        Build and validate a document from parsed JSON.

        Raises:
            InvalidInputError: If a field is missing or mistyped, or an id repeats
        """
        if not isinstance(data, dict):
            raise InvalidInputError("Game plan must be a JSON object")

        title = _require_str(data, "title", "game plan")
        story_data = data.get("story")
        if not isinstance(story_data, dict):
            raise InvalidInputError("Game plan 'story' must be an object")
        story = Story(_require_str(story_data, "tagline", "story"), _require_str(story_data, "summary", "story"))

        sections: Dict[str, List[NamedEntry]] = {}
        for section in cls.NAMED_SECTIONS:
            entries = []
            for index, entry in enumerate(_require_list(data, section)):
                where = f"{section}[{index}]"
                if not isinstance(entry, dict):
                    raise InvalidInputError(f"Game plan {where} must be an object")
                entries.append(NamedEntry(
                    _require_str(entry, "id", where),
                    _require_str(entry, "name", where),
                    _require_str(entry, "description", where),
                ))
            _check_unique(section, [entry.id for entry in entries])
            sections[section] = entries

        quests = []
        for index, entry in enumerate(_require_list(data, "quests")):
            where = f"quests[{index}]"
            if not isinstance(entry, dict):
                raise InvalidInputError(f"Game plan {where} must be an object")
            steps = entry.get("steps")
            if not isinstance(steps, list) or not all(isinstance(step, str) for step in steps):
                raise InvalidInputError(f"Game plan {where}.steps must be a list of strings")
            quests.append(Quest(
                _require_str(entry, "id", where),
                _require_str(entry, "title", where),
                _require_str(entry, "objective", where),
                list(steps),
            ))
        _check_unique("quests", [quest.id for quest in quests])

        return cls(title=title, story=story, quests=quests, **sections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "story": self.story.to_dict(),
            "actors": [entry.to_dict() for entry in self.actors],
            "enemies": [entry.to_dict() for entry in self.enemies],
            "items": [entry.to_dict() for entry in self.items],
            "maps": [entry.to_dict() for entry in self.maps],
            "quests": [quest.to_dict() for quest in self.quests],
        }


def _require_str(data: Dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise InvalidInputError(f"Game plan {where}.{key} must be a string")
    return value


def _require_list(data: Dict[str, Any], key: str) -> list:
    value = data.get(key)
    if not isinstance(value, list):
        raise InvalidInputError(f"Game plan '{key}' must be a list")
    return value


def _check_unique(section: str, ids: List[str]) -> None:
    seen = set()
    for entry_id in ids:
        if entry_id in seen:
            raise InvalidInputError(f"Duplicate id '{entry_id}' in game plan {section}")
        seen.add(entry_id)
