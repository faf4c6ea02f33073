"""
Tests for prompt composition and the category registry.
"""

import unittest

from ..composer import (
    PromptComposer, GenerationMode, PixelContract, SchemaContract, TextContract, Transparency,
    category_registry, INHERIT
)
from ..composer.registry import CategoryRegistry, CategorySpec
from ..errors import InvalidInputError
from .factories import png_data_uri


class TestContractFidelity(unittest.TestCase):
    """Composed requests carry the fixed contract of their category."""

    def setUp(self):
        self.composer = PromptComposer()
        self.ref = png_data_uri()

    def test_character(self):
        request = self.composer.compose("character", "a knight")
        contract = request.output_contract

        self.assertEqual(request.mode, GenerationMode.CREATE_IMAGE)
        self.assertEqual(contract.aspect_ratio, "1:1")
        self.assertTrue(contract.transparent)
        self.assertEqual(contract.facing, "front")
        self.assertEqual(request.aspect_ratio, "1:1")

    def test_walking_sprite(self):
        request = self.composer.compose("walking-sprite", "", [self.ref])
        contract = request.output_contract

        self.assertEqual(request.mode, GenerationMode.TRANSFORM_IMAGE)
        self.assertEqual((contract.columns, contract.rows), (3, 4))
        self.assertEqual(contract.frame_size, (48, 48))
        self.assertEqual(contract.size, (144, 192))
        self.assertEqual(contract.frame_count, 12)
        self.assertTrue(contract.transparent)

    def test_battler(self):
        contract = self.composer.compose("battler", "", [self.ref]).output_contract
        self.assertEqual(contract.frame_count, 1)
        self.assertEqual(contract.facing, "left")
        self.assertTrue(contract.transparent)

    def test_faceset(self):
        contract = self.composer.compose("faceset", "", [self.ref]).output_contract
        self.assertEqual(contract.size, (144, 144))
        self.assertTrue(contract.transparent)

    def test_combat_effect(self):
        request = self.composer.compose("combat-effect", "a fire slash")
        contract = request.output_contract

        self.assertEqual((contract.columns, contract.rows), (5, 1))
        self.assertEqual(contract.frame_size, (192, 192))
        self.assertEqual(contract.size, (960, 192))
        self.assertTrue(contract.transparent)
        self.assertTrue(contract.no_text)
        self.assertIn("exactly 5 frames arranged horizontally", request.prompt_text)
        self.assertIn("watermarks", request.prompt_text)

    def test_tileset(self):
        contract = self.composer.compose("tileset", "a forest").output_contract
        self.assertEqual(contract.frame_size, (48, 48))
        self.assertEqual(contract.size, (384, 384))
        self.assertEqual(contract.transparency, Transparency.MIXED)
        self.assertFalse(contract.transparent)

    def test_concept_art(self):
        request = self.composer.compose("concept-art", "a castle at dusk")
        self.assertEqual(request.output_contract.aspect_ratio, "16:9")
        self.assertEqual(request.output_contract.transparency, Transparency.OPAQUE)
        self.assertIn("fully opaque", request.prompt_text)

    def test_icons(self):
        for category in ("item", "equipment"):
            contract = self.composer.compose(category, "a potion").output_contract
            self.assertEqual(contract.size, (48, 48), category)
            self.assertTrue(contract.transparent, category)

    def test_chest(self):
        contract = self.composer.compose("chest", "a wooden chest").output_contract
        self.assertEqual(contract.size, (144, 48))
        self.assertEqual(contract.frame_count, 3)

    def test_structured_categories(self):
        for category in ("skill", "stats", "game-plan"):
            request = self.composer.compose(category, "a fire mage")
            self.assertEqual(request.mode, GenerationMode.STRUCTURED_TEXT, category)
            self.assertIsInstance(request.output_contract, SchemaContract, category)
            for field_name in request.output_contract.required:
                self.assertIn(f"- {field_name} (", request.prompt_text)

    def test_stats_prompt_lists_ranges(self):
        request = self.composer.compose("stats", "a sturdy tank")
        self.assertIn("- hp (integer): Max HP, 1 to 9999", request.prompt_text)

    def test_audio_is_free_text(self):
        request = self.composer.compose("audio-sfx", "a sword clash")
        self.assertEqual(request.mode, GenerationMode.FREE_TEXT)
        self.assertIsInstance(request.output_contract, TextContract)

    def test_prompt_contains_user_text_and_technical_section(self):
        request = self.composer.compose("monster", "  a slime king  ")
        self.assertIn('"a slime king"', request.prompt_text)
        self.assertIn("**Technical Specifications:**", request.prompt_text)
        self.assertIn("The subject must face left", request.prompt_text)


class TestCompositionErrors(unittest.TestCase):
    """Invalid requests fail before any provider call."""

    def setUp(self):
        self.composer = PromptComposer()

    def test_unknown_category(self):
        with self.assertRaises(InvalidInputError) as ctx:
            self.composer.compose("dragon", "big")
        self.assertEqual(ctx.exception.detail["category"], "dragon")

    def test_empty_text(self):
        with self.assertRaises(InvalidInputError):
            self.composer.compose("character", "   ")

    def test_transform_without_reference(self):
        for category in ("walking-sprite", "battler", "faceset", "adjustment", "map-restyle"):
            with self.assertRaises(InvalidInputError, msg=category):
                self.composer.compose(category, "something")

    def test_too_many_references(self):
        ref = png_data_uri()
        with self.assertRaises(InvalidInputError):
            self.composer.compose("battler", "", [ref, ref])

    def test_create_mode_rejects_references(self):
        with self.assertRaises(InvalidInputError):
            self.composer.compose("character", "a knight", [png_data_uri()])

    def test_undecodable_reference(self):
        with self.assertRaises(InvalidInputError):
            self.composer.compose("battler", "", ["data:image/png;base64,@@not-base64@@"])

    def test_reference_not_a_data_uri(self):
        with self.assertRaises(InvalidInputError):
            self.composer.compose("battler", "", ["/tmp/hero.png"])

    def test_game_plan_adjust_requires_current_plan(self):
        with self.assertRaises(InvalidInputError):
            self.composer.compose("game-plan-adjust", "add a dragon")

    def test_non_string_text(self):
        with self.assertRaises(InvalidInputError):
            self.composer.compose("character", None)


class TestFusedCharacter(unittest.TestCase):
    """Multi-reference synthesis maps images to body aspects in order."""

    def setUp(self):
        self.composer = PromptComposer()
        self.head = png_data_uri((32, 32))
        self.pose = png_data_uri((40, 40))
        self.clothing = png_data_uri((56, 56))

    def test_all_roles_present(self):
        request = self.composer.compose_fused("a ranger", self.head, self.pose, self.clothing)

        self.assertEqual(request.reference_images, (self.head, self.pose, self.clothing))
        self.assertEqual(request.metadata["roles"], ("head", "pose", "clothing"))

        prompt = request.prompt_text
        image_1 = prompt.index("Image 1")
        image_2 = prompt.index("Image 2")
        image_3 = prompt.index("Image 3")
        self.assertLess(image_1, image_2)
        self.assertLess(image_2, image_3)
        self.assertIn("HEAD", prompt[image_1:image_2])
        self.assertIn("POSE", prompt[image_2:image_3])
        self.assertIn("CLOTHING", prompt[image_3:])

    def test_missing_roles_are_invented(self):
        request = self.composer.compose_fused("a ranger", head=None, pose=self.pose, clothing=None)

        self.assertEqual(request.reference_images, (self.pose,))
        self.assertEqual(request.metadata["roles"], ("pose",))
        self.assertIn("Image 1", request.prompt_text)
        self.assertNotIn("Image 2", request.prompt_text)
        self.assertIn("invent", request.prompt_text.lower())

    def test_no_references_falls_back_to_character(self):
        request = self.composer.compose_fused("a ranger")
        self.assertEqual(request.category, "character")
        self.assertEqual(request.mode, GenerationMode.CREATE_IMAGE)
        self.assertEqual(request.reference_images, ())

    def test_bad_reference(self):
        with self.assertRaises(InvalidInputError):
            self.composer.compose_fused("a ranger", head="not an image")


class TestOptionalInputs(unittest.TestCase):

    def setUp(self):
        self.composer = PromptComposer()

    def test_optimize_with_style_reference(self):
        first, style = png_data_uri(), png_data_uri((64, 64))
        request = self.composer.compose("optimize", "cleaner shading", [first, style])
        self.assertEqual(request.reference_images, (first, style))
        self.assertIn("STYLE REFERENCE", request.prompt_text)

    def test_optimize_without_style_reference(self):
        request = self.composer.compose("optimize", "cleaner shading", [png_data_uri()])
        self.assertNotIn("STYLE REFERENCE", request.prompt_text)

    def test_game_plan_lists_assets(self):
        request = self.composer.compose(
            "game-plan", "a cursed kingdom", assets={"Hero": "a knight", "Villain": "a goblin"}
        )
        self.assertIn('- Hero: An asset described as "a knight"', request.prompt_text)

    def test_game_plan_adjust_embeds_plan(self):
        request = self.composer.compose("game-plan-adjust", "rename the hero", current_plan={"title": "Old"})
        self.assertIn('"title": "Old"', request.prompt_text)

    def test_style_changes_prompt(self):
        retro = PromptComposer(style="retro").compose("character", "a knight")
        self.assertIn("8-bit", retro.prompt_text)

    def test_unknown_style(self):
        with self.assertRaises(ValueError):
            PromptComposer(style="watercolor")


class TestCategoryRegistry(unittest.TestCase):

    def test_registry_is_valid(self):
        self.assertEqual(category_registry.validate(), [])

    def test_inherit_only_on_edit_transforms(self):
        inheriting = {spec.name for spec in category_registry if spec.storage_category == INHERIT}
        self.assertEqual(inheriting, {"adjustment", "optimize", "remove-background"})

    def test_storage_categories(self):
        storage = category_registry.storage_categories()
        self.assertIn("character", storage)
        self.assertIn("map", storage)
        self.assertNotIn("tileset", storage)
        self.assertNotIn(INHERIT, storage)

    def test_invalid_entries_are_reported(self):
        registry = CategoryRegistry((
            CategorySpec("character", GenerationMode.STRUCTURED_TEXT, PixelContract(), "character"),
            CategorySpec("nameless", GenerationMode.CREATE_IMAGE, PixelContract(), "x"),
        ))
        errors = registry.validate()
        self.assertTrue(any("structured mode requires a schema contract" in e for e in errors))
        self.assertTrue(any("nameless: no prompt template" in e for e in errors))

    def test_duplicate_category(self):
        spec = CategorySpec("character", GenerationMode.CREATE_IMAGE, PixelContract(), "character")
        with self.assertRaises(ValueError):
            CategoryRegistry((spec, spec))

    def test_inconsistent_pixel_contract(self):
        with self.assertRaises(ValueError):
            PixelContract(width=100, height=192, frame_size=(48, 48), columns=3, rows=4)


if __name__ == "__main__":
    unittest.main()
