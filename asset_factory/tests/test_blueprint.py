"""
Tests for the design document model and engine tables.
"""

import unittest

import pytest

from ..errors import InvalidInputError
from ..processing.blueprint import DesignDocument
from ..processing.engine_data import build_actors, build_enemies, build_items
from .factories import sample_plan


class TestDesignDocument(unittest.TestCase):

    def test_from_dict(self):
        plan = DesignDocument.from_dict(sample_plan())

        self.assertEqual(plan.title, "Crown of Ash")
        self.assertEqual(plan.story.tagline, "The last ember must not fall.")
        self.assertEqual([actor.id for actor in plan.actors], ["hero_01", "npc_01"])
        self.assertEqual(plan.enemies[0].name, "Grub")
        self.assertEqual(plan.quests[0].steps[-1], "Defeat Grub")

    def test_to_dict_matches_input(self):
        data = sample_plan()
        self.assertEqual(DesignDocument.from_dict(data).to_dict(), data)

    def test_empty_sections_are_allowed(self):
        data = sample_plan()
        data["maps"] = []
        data["quests"] = []
        plan = DesignDocument.from_dict(data)
        self.assertEqual(plan.maps, [])

    def test_extra_keys_are_dropped(self):
        data = sample_plan()
        data["notes"] = "ignored"
        self.assertNotIn("notes", DesignDocument.from_dict(data).to_dict())


class TestDesignDocumentErrors:

    @pytest.mark.parametrize("mutate", [
        lambda d: d.pop("title"),
        lambda d: d.__setitem__("title", 7),
        lambda d: d.__setitem__("story", "a story"),
        lambda d: d["story"].pop("summary"),
        lambda d: d.pop("actors"),
        lambda d: d.__setitem__("enemies", {"id": "x"}),
        lambda d: d["items"].append("Ember Crown"),
        lambda d: d["maps"][0].pop("description"),
        lambda d: d["quests"][0].__setitem__("steps", "Defeat Grub"),
        lambda d: d["quests"][0].__setitem__("steps", [1, 2]),
    ])
    def test_invalid(self, mutate):
        data = sample_plan()
        mutate(data)
        with pytest.raises(InvalidInputError):
            DesignDocument.from_dict(data)

    def test_not_an_object(self):
        with pytest.raises(InvalidInputError):
            DesignDocument.from_dict(["title"])

    @pytest.mark.parametrize("section", ["actors", "maps"])
    def test_duplicate_ids(self, section):
        data = sample_plan()
        data[section].append(dict(data[section][0]))
        with pytest.raises(InvalidInputError, match="Duplicate id"):
            DesignDocument.from_dict(data)

    def test_duplicate_quest_ids(self):
        data = sample_plan()
        data["quests"].append(dict(data["quests"][0]))
        with pytest.raises(InvalidInputError, match="Duplicate id"):
            DesignDocument.from_dict(data)

    def test_same_id_in_different_sections(self):
        data = sample_plan()
        data["enemies"][0]["id"] = "hero_01"
        assert DesignDocument.from_dict(data).enemies[0].id == "hero_01"


class TestEngineTables(unittest.TestCase):

    def setUp(self):
        self.plan = DesignDocument.from_dict(sample_plan())

    def test_actors(self):
        actors = build_actors(self.plan, "AI_Hero_1")
        self.assertEqual(len(actors), 2)
        self.assertIsNone(actors[0])
        self.assertEqual(actors[1]["id"], 1)
        self.assertEqual(actors[1]["profile"], "A young knight in silver armor.")
        self.assertEqual(actors[1]["note"], "<plan id: hero_01>")

    def test_enemies(self):
        enemies = build_enemies(self.plan, "AI_Villain_2")
        self.assertEqual(enemies[1]["battlerName"], "AI_Villain_2")
        self.assertEqual(len(enemies[1]["params"]), 8)

    def test_items_without_icon(self):
        items = build_items(self.plan, None)
        self.assertEqual(items[1]["note"], "<plan id: key_item_01>")
        self.assertEqual(items[1]["itypeId"], 2)

    def test_empty_sections(self):
        data = sample_plan()
        data["actors"] = []
        plan = DesignDocument.from_dict(data)
        self.assertEqual(build_actors(plan, "AI_Hero_1"), [None])


if __name__ == "__main__":
    unittest.main()
