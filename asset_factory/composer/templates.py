"""
Prompt templates for every asset category.
"""

import json
from typing import Dict, List, Optional, Any, Sequence

from .contracts import OutputContract


FUSED_ROLES = ("head", "pose", "clothing")

FUSED_ROLE_STATEMENTS = {
    "head": "governs the HEAD: copy the face, hairstyle, hair color and head accessories from this image",
    "pose": "governs the POSE: copy the body proportions and stance from this image",
    "clothing": "governs the CLOTHING: copy the outfit, armor, colors and carried equipment from this image",
}

FUSED_ROLE_INVENTIONS = {
    "head": "No head reference was provided: invent the face and hair from the text description alone.",
    "pose": "No pose reference was provided: use a neutral, front-facing standing A-pose.",
    "clothing": "No clothing reference was provided: invent the outfit from the text description alone.",
}


class PromptTemplate:
    """Template system for consistent generation prompts."""

    # Intro paragraphs per category; the technical specification block is
    # appended from the category's output contract.
    TEMPLATES = {
        "character": (
            'Generate a single, high-quality pixel art character. The character is: "{description}".\n'
            "The character should be full-body, standing still, and facing directly forward in a neutral A-pose.\n"
            "The character should be centered in the frame.\n"
            "**CRITICAL STYLE REQUIREMENT:** {style}"
        ),
        "walking-sprite": (
            "Using the provided character image as a reference, generate a complete RPG Maker MZ walking animation sprite sheet.\n"
            "Row 1: Character walking down. Row 2: Character walking left. Row 3: Character walking right. Row 4: Character walking up.\n"
            "Maintain the character's design and colors accurately. The style must be pixel art.\n"
            "{description}"
        ),
        "battler": (
            "Using the provided character image as a reference, generate a single, static side-view battler sprite for RPG Maker MZ.\n"
            "The character should be in a dynamic, ready-for-battle pose.\n"
            "The style must be high-quality pixel art that matches the reference image.\n"
            "Ensure the sprite is larger and more detailed than a standard walking sprite.\n"
            "{description}"
        ),
        "faceset": (
            "Using the provided character image as a reference, generate a single character portrait (faceset) for RPG Maker MZ.\n"
            "The image must focus on the character's head and shoulders with a neutral expression.\n"
            "The style must be high-quality pixel art matching the reference.\n"
            "{description}"
        ),
        "monster": (
            "Generate a single, static side-view monster battler sprite for an RPG Maker style game.\n"
            'The monster is: "{description}".\n'
            "The monster should be in a dynamic, ready-for-battle pose and look menacing or interesting.\n"
            "Ensure the sprite is large and detailed enough to be a prominent enemy on the battle screen.\n"
            "**CRITICAL STYLE REQUIREMENT:** {style}"
        ),
        "item": (
            "Generate a single, high-quality pixel art icon for a JRPG item, suitable for RPG Maker MZ.\n"
            'The item is: "{description}".\n'
            "The icon should be clear, easily recognizable, centered, and fill the frame appropriately.\n"
            "**CRITICAL STYLE REQUIREMENT:** {style}"
        ),
        "equipment": (
            "Generate a single, high-quality pixel art icon for a JRPG equipment piece (weapon, armor, accessory), suitable for RPG Maker MZ.\n"
            'The equipment is: "{description}".\n'
            "The icon should be clear, easily recognizable, centered, and fill the frame appropriately.\n"
            "**CRITICAL STYLE REQUIREMENT:** {style}"
        ),
        "pet": (
            "Generate a complete RPG Maker MZ walking animation sprite sheet for a small pet, companion, or mount.\n"
            'The creature is: "{description}".\n'
            "Row 1: Creature walking down. Row 2: Creature walking left. Row 3: Creature walking right. Row 4: Creature walking up.\n"
            "**CRITICAL STYLE REQUIREMENT:** {style}"
        ),
        "chest": (
            "Generate a pixel art sprite sheet for a treasure chest for a top-down JRPG like RPG Maker.\n"
            'The chest\'s appearance is: "{description}".\n'
            "The animation sequence should be: 1. Chest Closed, 2. Chest Opening, 3. Chest Fully Open.\n"
            "Each frame should be visually distinct to show the opening process.\n"
            "**CRITICAL STYLE REQUIREMENT:** {style}"
        ),
        "combat-effect": (
            "You are an AI specialized in creating pixel art assets for the RPG Maker MZ game engine.\n"
            "Your task is to generate a combat animation sprite sheet based on the user's request.\n"
            'User\'s request: "{description}".\n'
            "The art style must be dynamic, high-impact, colorful pixel art suitable for a Japanese RPG (JRPG).\n"
            "The animation should progress logically from the first frame on the left to the last frame on the right.\n"
            "The image must be a pure graphical asset."
        ),
        "tileset": (
            "Generate a pixel art tileset for a top-down RPG, compatible with RPG Maker MZ.\n"
            'The theme of the tileset is: "{description}".\n'
            "**CRITICAL STYLE REQUIREMENT:** The art style MUST be a vibrant, colorful, and detailed pixel art aesthetic with a sense of wonder.\n"
            "Include a variety of ground textures (e.g. grass, dirt, sand, water) and decorative elements like flowers, rocks, trees, and path borders relevant to the theme.\n"
            "Do not include any characters."
        ),
        "map-restyle": (
            "You are an expert pixel artist tasked with stylizing a game map. Redraw the provided RPG Maker map screenshot completely, using it as a perfect layout reference.\n"
            "**CRITICAL STYLE REQUIREMENT:** The new style must be a vibrant, beautiful, and detailed pixel art aesthetic with rich colors and dynamic lighting.\n"
            "Perfectly preserve the original layout, object placement, paths, and overall composition of the map.\n"
            "The output is intended for use as a parallax background in RPG Maker. Do NOT add grid lines or characters.\n"
            'If the user provides additional style notes, incorporate them. User notes: "{description}"'
        ),
        "concept-art": (
            "Generate a high-quality, vibrant, and dynamic game concept art illustration based on the user's scene description.\n"
            'The scene is: "{description}".\n'
            "**CRITICAL STYLE REQUIREMENT:** The art style must be a beautiful, high-detail digital painting aesthetic, similar to promotional art for modern JRPGs. "
            "The lighting should be dramatic and the composition should be cinematic."
        ),
        "concept-art-from-assets": (
            "You are an expert game illustrator. Create a single, high-quality, vibrant, and dynamic game concept art illustration "
            "based on the user's scene description and the provided reference images.\n"
            "The final image should be a cohesive scene that incorporates the characters, creatures, or items from the reference images.\n"
            "Use the provided images as direct visual references for the subjects in your illustration.\n"
            'User\'s scene description: "{description}".\n'
            "**CRITICAL STYLE REQUIREMENT:** The art style must be a beautiful, high-detail digital painting aesthetic. "
            "The lighting should be dramatic and the composition should be cinematic."
        ),
        "adjustment": (
            "You are an expert pixel artist. Take the user's provided image and redraw it based on their requested adjustment.\n"
            'User\'s adjustment request: "{description}".\n'
            "**CRITICAL INSTRUCTIONS:**\n"
            "1. Preserve Core Elements: Maintain the original image's composition, pose, style, and overall feel.\n"
            "2. Apply Change: Only apply the specific change requested by the user. Do not add or change anything else."
        ),
        "optimize": (
            "You are an expert pixel art artist. Take the user's provided pixel art character (the first image) and enhance it "
            "based on their request, improving its overall quality.\n"
            'User\'s request: "{description}".\n'
            "{style_reference}"
            "**CRITICAL INSTRUCTIONS:**\n"
            "1. Preserve Core Design: Maintain the original character's pose and fundamental design from the FIRST image.\n"
            "2. Enhance Quality: Improve the shading, clean up messy pixels, and refine details to make it look like professional 16-bit JRPG pixel art."
        ),
        "remove-background": (
            "Remove the background of the provided image.\n"
            "Keep the main subject exactly as it is: same pixels, colors, position and scale.\n"
            "Every pixel that is not part of the subject must become fully transparent.\n"
            "{description}"
        ),
        "fused-character": (
            "You are an expert pixel artist. Combine the provided reference images into ONE new full-body character.\n"
            'The character is: "{description}".\n'
            "**REFERENCE IMAGE ROLES (in the order the images are attached):**\n"
            "{role_statements}\n"
            "The character should be standing still in a neutral A-pose and be centered in the frame.\n"
            "**CRITICAL STYLE REQUIREMENT:** {style}"
        ),
        "skill": (
            "You are a professional JRPG game designer. Design a character skill based on the user's concept.\n"
            'User\'s skill concept: "{description}"\n'
            "Generate the skill design now."
        ),
        "stats": (
            "You are a professional game designer balancing stats for an RPG Maker MZ game.\n"
            "Design a set of base stats for a level 1 character or monster based on the user's description.\n"
            "Use typical RPG Maker values for level 1 entities as the baseline.\n"
            'User description: "{description}"\n'
            "Generate the stats now."
        ),
        "game-plan": (
            "You are an expert RPG game designer for the RPG Maker MZ engine.\n"
            "Your task is to generate a concise game design document in JSON format based on a user's concept and selected assets.\n\n"
            "**User's Game Concept:**\n\"{description}\"\n\n"
            "**Assets Provided by User:**\n{asset_descriptions}\n\n"
            "**CRITICAL INSTRUCTIONS:**\n"
            "1. Use Provided Assets: All descriptions and names for the actors, enemies, and items MUST be directly inspired by the provided asset descriptions.\n"
            "2. Creative & Coherent: Create a simple but engaging story and a single starting quest that connects all the provided elements.\n"
            "3. RPG Maker Concepts: Generate at least 2 map ideas (e.g. a starting town and a dungeon).\n"
            "4. Be Concise: Keep all descriptions brief. This is a starting blueprint.\n"
            "5. Every id must be unique within its list."
        ),
        "game-plan-adjust": (
            "You are an expert RPG game designer for the RPG Maker MZ engine.\n"
            "Your task is to update a game design document (in JSON format) based on a user's modification request.\n\n"
            "**Current Game Plan (JSON):**\n{current_plan}\n\n"
            "**User's Change Request:**\n\"{description}\"\n\n"
            "**CRITICAL INSTRUCTIONS:**\n"
            "1. Return the *entire updated game plan*, not just the changed part.\n"
            "2. Apply the Change: incorporate the request. If they want to add an NPC, add a new entry in the 'actors' section.\n"
            "3. Maintain Cohesion: if the hero's name changes, update it in the story summary as well.\n"
            "4. Every id must stay unique within its list."
        ),
        "audio-sfx": (
            "You are a professional sound designer for video games. Generate a detailed description of a sound effect based on the user's request. "
            "This description will be used by an actual sound designer to create the sound.\n"
            'User\'s request: "{description}"\n'
            "**CRITICAL INSTRUCTIONS:**\n"
            "1. Be Vivid and Descriptive: describe the sound's texture, layers, timing, and emotional impact.\n"
            "2. Break it Down: describe the sound in terms of Attack, Sustain and Decay.\n"
            "3. Provide Context: suggest how the sound might change based on distance or environment."
        ),
        "audio-music": (
            "You are a professional music composer for video games. Write a detailed creative brief for a short musical piece or loop based on the user's request.\n"
            'User\'s request: "{description}"\n'
            "**CRITICAL INSTRUCTIONS:**\n"
            "1. Describe the Mood.\n"
            "2. Suggest Instrumentation.\n"
            "3. Describe Melody & Harmony.\n"
            "4. Describe Rhythm and tempo.\n"
            "5. Reference Similar Styles from other games or genres."
        ),
    }

    # Style modifiers for pixel-art categories
    STYLE_MODIFIERS = {
        "jrpg": "The style should be vibrant, detailed 16-bit JRPG pixel art.",
        "retro": "The style should be retro 8-bit pixel art with a limited palette and a nostalgic feel.",
        "hd": "The style should be high-resolution HD-2D pixel art with soft lighting and rich detail.",
    }

    def __init__(self, style: str = "jrpg"):
        """Initialize prompt template with style."""
        if style not in self.STYLE_MODIFIERS:
            raise ValueError(f"style must be one of {sorted(self.STYLE_MODIFIERS)}, got {style}")
        self.style = style

    def render(self, category: str, description: str, contract: OutputContract, **extra: Any) -> str:
        """
        Render the full prompt for a category.

        Args:
            category: Registered category name
            description: User-supplied text
            contract: Output contract whose technical lines are appended
            **extra: Additional template placeholders

        Returns:
            Prompt text
        """
        values = {
            "description": description.strip(),
            "style": self.STYLE_MODIFIERS[self.style],
            "style_reference": "",
            "role_statements": "",
            "asset_descriptions": "",
            "current_plan": "",
        }
        values.update(extra)

        intro = self.TEMPLATES[category].format(**values).rstrip()
        spec_lines = "\n".join(f"- {line}" for line in contract.describe())

        return f"{intro}\n\n**Technical Specifications:**\n{spec_lines}\n"


def describe_fused_roles(present_roles: Sequence[str]) -> str:
    """
    Build the role statements for a multi-reference character synthesis.

    One statement per attached image, numbered in attachment order, followed
    by an instruction to invent each role that has no image.
    """
    lines: List[str] = []
    for position, role in enumerate(present_roles, start=1):
        lines.append(f"- Image {position} {FUSED_ROLE_STATEMENTS[role]}.")
    for role in FUSED_ROLES:
        if role not in present_roles:
            lines.append(f"- {FUSED_ROLE_INVENTIONS[role]}")
    return "\n".join(lines)


def describe_slot_assets(assets: Optional[Dict[str, str]]) -> str:
    """Render slot -> prompt pairs for the game plan template."""
    if not assets:
        return "- (none)"
    return "\n".join(f'- {slot}: An asset described as "{prompt}"' for slot, prompt in assets.items())


def render_plan(plan: Dict[str, Any]) -> str:
    """Serialize a plan for inclusion in an adjustment prompt."""
    return json.dumps(plan, indent=2, ensure_ascii=False)
