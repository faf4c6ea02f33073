"""
Response schemas for structured-text categories.

Schemas use the provider's OpenAPI-subset vocabulary (upper-case type names).
"""

SKILL_DESIGN_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "skillName": {"type": "STRING", "description": "A cool, thematic skill name."},
        "description": {"type": "STRING", "description": "The in-game description shown to the player."},
        "mpCost": {"type": "INTEGER", "description": "MP required to use the skill, between 0 and 999."},
        "damageType": {"type": "STRING", "description": "Damage type, e.g. fire, ice, physical, holy, dark."},
        "target": {"type": "STRING", "description": "Who the skill affects, e.g. one enemy, all enemies, one ally, self."},
        "effects": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Special effects or status ailments applied, e.g. 'poisons the target', 'heals 100 HP'.",
        },
    },
    "required": ["skillName", "description", "mpCost", "damageType", "target", "effects"],
}


STATS_DESIGN_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "hp": {"type": "INTEGER", "description": "Max HP, 1 to 9999. A typical level 1 hero has about 500."},
        "mp": {"type": "INTEGER", "description": "Max MP, 0 to 9999. A typical level 1 mage has about 100."},
        "atk": {"type": "INTEGER", "description": "Physical attack, 1 to 999. A typical level 1 warrior has about 15."},
        "def": {"type": "INTEGER", "description": "Physical defense, 1 to 999. A typical level 1 tank has about 20."},
        "mat": {"type": "INTEGER", "description": "Magic attack, 1 to 999. A typical level 1 mage has about 20."},
        "mdf": {"type": "INTEGER", "description": "Magic defense, 1 to 999. A typical level 1 priest has about 15."},
        "agi": {"type": "INTEGER", "description": "Agility (speed/evasion), 1 to 999. A typical level 1 thief has about 20."},
        "luk": {"type": "INTEGER", "description": "Luck, 1 to 999. A typical level 1 character has about 10."},
        "rationale": {"type": "STRING", "description": "Short explanation of why these values fit the description."},
    },
    "required": ["hp", "mp", "atk", "def", "mat", "mdf", "agi", "luk", "rationale"],
}


def _named_entry(example_id: str, name_hint: str, description_hint: str) -> dict:
    return {
        "type": "OBJECT",
        "properties": {
            "id": {"type": "STRING", "description": f'A unique identifier, e.g. "{example_id}".'},
            "name": {"type": "STRING", "description": name_hint},
            "description": {"type": "STRING", "description": description_hint},
        },
        "required": ["id", "name", "description"],
    }


GAME_PLAN_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING", "description": "A cool and catchy title for the game."},
        "story": {
            "type": "OBJECT",
            "properties": {
                "tagline": {"type": "STRING", "description": "A short, exciting tagline for the game."},
                "summary": {
                    "type": "STRING",
                    "description": "A one-paragraph summary of the main plot, introducing the hero, villain, and core conflict.",
                },
            },
            "required": ["tagline", "summary"],
        },
        "actors": {
            "type": "ARRAY",
            "items": _named_entry("hero_01", "The character's name.",
                                  "A brief, 1-2 sentence backstory or personality description."),
        },
        "enemies": {
            "type": "ARRAY",
            "items": _named_entry("villain_01", "The enemy's name.",
                                  "A brief, 1-2 sentence description of the enemy and its motivations."),
        },
        "items": {
            "type": "ARRAY",
            "items": _named_entry("key_item_01", "The item's name.",
                                  "What this item is and its purpose in the story."),
        },
        "maps": {
            "type": "ARRAY",
            "items": _named_entry("map_01_village", 'The name of the map, e.g. "Whisperwind Village".',
                                  "A brief description of the map's atmosphere and key features."),
        },
        "quests": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING", "description": 'A unique identifier, e.g. "quest_01_main".'},
                    "title": {"type": "STRING", "description": "The title of the quest."},
                    "objective": {"type": "STRING", "description": "A clear, one-sentence objective for the player."},
                    "steps": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                        "description": "A list of 2-3 simple steps to complete the quest.",
                    },
                },
                "required": ["id", "title", "objective", "steps"],
            },
        },
    },
    "required": ["title", "story", "actors", "enemies", "items", "maps", "quests"],
}
