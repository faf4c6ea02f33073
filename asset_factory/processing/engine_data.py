"""
RPG Maker MZ database records derived from a design document.

The engine stores each database table as a JSON array whose index 0 is
``null`` and whose entry ids match their array index.
"""

from typing import Dict, List, Optional, Any

from .blueprint import DesignDocument, NamedEntry


DEFAULT_ENEMY_PARAMS = [300, 0, 20, 15, 15, 15, 15, 15]


def _first(entries: List[NamedEntry]) -> Optional[NamedEntry]:
    return entries[0] if entries else None


def build_actors(plan: DesignDocument, character_name: Optional[str]) -> List[Optional[Dict[str, Any]]]:
    """Actors table with the plan's first actor bound to the hero sprite sheet."""
    actor = _first(plan.actors)
    if actor is None:
        return [None]

    return [None, {
        "id": 1,
        "battlerName": "",
        "characterIndex": 0,
        "characterName": character_name or "",
        "classId": 1,
        "equips": [0, 0, 0, 0, 0],
        "faceIndex": 0,
        "faceName": "",
        "traits": [],
        "initialLevel": 1,
        "maxLevel": 99,
        "name": actor.name,
        "nickname": "",
        "note": f"<plan id: {actor.id}>",
        "profile": actor.description,
    }]


def build_enemies(plan: DesignDocument, battler_name: Optional[str]) -> List[Optional[Dict[str, Any]]]:
    """Enemies table with the plan's first enemy bound to the villain battler."""
    enemy = _first(plan.enemies)
    if enemy is None:
        return [None]

    return [None, {
        "id": 1,
        "actions": [{
            "conditionParam1": 0,
            "conditionParam2": 0,
            "conditionType": 0,
            "rating": 5,
            "skillId": 1,
        }],
        "battlerHue": 0,
        "battlerName": battler_name or "",
        "dropItems": [{"dataId": 1, "denominator": 1, "kind": 0} for _ in range(3)],
        "exp": 100,
        "traits": [],
        "gold": 50,
        "name": enemy.name,
        "note": f"<plan id: {enemy.id}>\n{enemy.description}",
        "params": list(DEFAULT_ENEMY_PARAMS),
    }]


def build_items(plan: DesignDocument, icon_name: Optional[str]) -> List[Optional[Dict[str, Any]]]:
    """Items table with the plan's first item as a key item."""
    item = _first(plan.items)
    if item is None:
        return [None]

    note = f"<plan id: {item.id}>"
    if icon_name:
        # MZ indexes icons into IconSet.png; the generated icon is referenced by tag
        note += f"\n<icon file: {icon_name}>"

    return [None, {
        "id": 1,
        "animationId": 0,
        "consumable": False,
        "damage": {"critical": False, "elementId": 0, "formula": "0", "type": 0, "variance": 20},
        "description": item.description,
        "effects": [],
        "hitType": 0,
        "iconIndex": 0,
        "itypeId": 2,
        "name": item.name,
        "note": note,
        "occasion": 3,
        "price": 0,
        "repeats": 1,
        "scope": 0,
        "speed": 0,
        "successRate": 100,
        "tpGain": 0,
    }]
