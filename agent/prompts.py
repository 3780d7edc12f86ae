"""
Prompt templates for Gemini interactions.

These prompts are written for a five-year-old audience:
1. Stories stay short, simple and happy
2. Puzzles use emojis only, no reading required
3. Image and video prompts favour bright cartoon styles

Philosophy:
- Every response should feel safe, warm and exciting
- Short beats clever: a child hears it read aloud
"""


class Prompts:
    """Collection of prompt templates for the studio."""

    # =========================================================================
    # TEXT PROMPTS
    # =========================================================================

    STORY = (
        "Write a very short, simple story (max 3 sentences) for a 5-year-old "
        "about a {character_name} who loves {theme}. Keep it happy and exciting."
    )

    STORY_FALLBACK = "Once upon a time..."

    PUZZLE = (
        "Create a visual pattern logic puzzle using EMOJIS only. "
        "The 'question' should be a sequence of emojis like '🍎 🍌 🍎 🍌 ❓'. "
        "The 'options' should be single emojis. "
        "The 'correctIndex' is the index of the answer in options. "
        "'explanation' is a very short text explaining why."
    )

    # =========================================================================
    # VIDEO PROMPTS
    # =========================================================================

    VIDEO = "A 3D cartoon style video of {subject} {action}. Vibrant colors, high quality."

    ANIMATE_IMAGE_DEFAULT = "Animate this image"

    # =========================================================================
    # NARRATION LINES
    # =========================================================================

    SAY_STORY_THINKING = "Thinking of a story..."
    SAY_STORY_FAILED = "I forgot the story. Can we try again?"
    SAY_PUZZLE_LOADING = "Let me find a puzzle for you."
    SAY_PUZZLE_READY = "Look at the pattern. What comes next?"
    SAY_PUZZLE_FAILED = "I am confused. Let's try another one."
    SAY_PUZZLE_CORRECT = "Yay! You are smart!"
    SAY_PUZZLE_WRONG = "Oops, try again!"
    SAY_MAGIC_START = "Adding {label} magic!"
    SAY_MAGIC_DONE = "Ta-da! Look at that!"
    SAY_MAGIC_FAILED = "Oops, the magic fizzled out. Try again."
    SAY_VIDEO_START = "I am making your movie. Wait a moment!"
    SAY_VIDEO_DONE = "Your movie is ready!"
    SAY_VIDEO_FAILED = "Oh no, something went wrong. Try again."


# =============================================================================
# Catalogues shown as big emoji buttons
# =============================================================================

STORY_THEMES = [
    {"icon": "🚀", "label": "Space"},
    {"icon": "🦖", "label": "Dinosaurs"},
    {"icon": "🍦", "label": "Ice Cream"},
    {"icon": "🧙‍♀️", "label": "Magic"},
    {"icon": "🐙", "label": "Ocean"},
    {"icon": "🏰", "label": "Castle"},
]

MAGIC_SPELLS = [
    {"icon": "🌈", "label": "Rainbows", "prompt": "Add rainbows and sparkles everywhere"},
    {"icon": "🖍️", "label": "Cartoon", "prompt": "Turn this into a colorful cartoon drawing"},
    {"icon": "🦸", "label": "Hero", "prompt": "Add a superhero cape and mask to the character"},
    {"icon": "❄️", "label": "Snow", "prompt": "Make it snowy and wintery"},
    {"icon": "🤠", "label": "Cowboy", "prompt": "Add a cowboy hat"},
    {"icon": "👽", "label": "Alien", "prompt": "Make it look like outer space with aliens"},
]

VIDEO_SUBJECTS = {
    "🐱": "a cute fluffy cat",
    "🐶": "a happy puppy",
    "🤖": "a friendly robot",
    "🦖": "a green dinosaur",
    "🦄": "a magical unicorn",
    "👽": "a funny alien",
}

VIDEO_ACTIONS = {
    "💃": "dancing happily",
    "🚀": "flying in space",
    "⚽": "playing soccer",
    "🏖️": "relaxing on the beach",
    "🎸": "playing a guitar",
    "🍕": "eating pizza",
}


def get_spell(label: str) -> dict:
    """Look up a magic spell by its label (case-insensitive)."""
    for spell in MAGIC_SPELLS:
        if spell["label"].lower() == label.lower():
            return spell
    raise KeyError(f"Unknown spell: {label}")
