"""Built-in word lists for seeding a new learner's library."""

from word_practice.models.library import PresetCategory, PresetWordList

PRESETS: tuple[PresetWordList, ...] = (
    PresetWordList(
        id="alphabet",
        name="Alphabet",
        category=PresetCategory.ALPHABET,
        description="All letters A-Z",
        words=list("abcdefghijklmnopqrstuvwxyz"),
        sort_order=1,
    ),
    PresetWordList(
        id="cvc-short-a",
        name="CVC Words - Short A",
        category=PresetCategory.CVC,
        description="Consonant-vowel-consonant words with short a",
        words=[
            "cat", "hat", "mat", "sat", "rat", "bat", "fat", "pat", "dad", "mad",
            "sad", "bad", "had", "pad", "jam", "ham", "yam", "ram", "can", "man",
            "pan", "fan", "ran", "van", "cap", "map", "tap", "nap", "sap", "lap",
            "bag", "tag", "wag", "rag", "nag",
        ],
        sort_order=2,
    ),
    PresetWordList(
        id="cvc-short-e",
        name="CVC Words - Short E",
        category=PresetCategory.CVC,
        description="Consonant-vowel-consonant words with short e",
        words=[
            "bed", "red", "led", "fed", "wed", "hen", "pen", "ten", "men", "den",
            "get", "jet", "let", "met", "net", "pet", "set", "vet", "wet", "beg",
            "leg", "peg", "web",
        ],
        sort_order=3,
    ),
    PresetWordList(
        id="cvc-short-i",
        name="CVC Words - Short I",
        category=PresetCategory.CVC,
        description="Consonant-vowel-consonant words with short i",
        words=[
            "bib", "rib", "fib", "big", "dig", "fig", "gig", "jig", "pig", "rig",
            "wig", "bin", "fin", "pin", "tin", "win", "sin", "dip", "hip", "lip",
            "rip", "sip", "tip", "zip", "bit", "fit", "hit", "kit", "lit", "pit",
            "sit", "wit",
        ],
        sort_order=4,
    ),
    PresetWordList(
        id="cvc-short-o",
        name="CVC Words - Short O",
        category=PresetCategory.CVC,
        description="Consonant-vowel-consonant words with short o",
        words=[
            "bob", "mob", "rob", "sob", "cob", "job", "cog", "dog", "fog", "hog",
            "jog", "log", "dot", "got", "hot", "jot", "lot", "not", "pot", "rot",
            "cot", "cod", "rod", "pod", "hop", "mop", "pop", "top",
        ],
        sort_order=5,
    ),
    PresetWordList(
        id="cvc-short-u",
        name="CVC Words - Short U",
        category=PresetCategory.CVC,
        description="Consonant-vowel-consonant words with short u",
        words=[
            "bud", "cud", "dud", "mud", "bug", "dug", "hug", "jug", "mug", "pug",
            "rug", "tug", "bun", "fun", "gun", "nun", "pun", "run", "sun", "but",
            "cut", "gut", "hut", "jut", "nut", "rut", "cup", "pup", "bus", "sub",
            "tub",
        ],
        sort_order=6,
    ),
    PresetWordList(
        id="dolch-pre-primer",
        name="Dolch Pre-Primer",
        category=PresetCategory.SIGHT_WORDS,
        description="Essential sight words for early readers",
        words=[
            "a", "and", "away", "big", "blue", "can", "come", "down", "find", "for",
            "funny", "go", "help", "here", "I", "in", "is", "it", "jump", "little",
            "look", "make", "me", "my", "not", "one", "play", "red", "run", "said",
            "see", "the", "three", "to", "two", "up", "we", "where", "yellow", "you",
        ],
        sort_order=7,
    ),
    PresetWordList(
        id="dolch-primer",
        name="Dolch Primer",
        category=PresetCategory.SIGHT_WORDS,
        description="Second level sight words",
        words=[
            "all", "am", "are", "at", "ate", "be", "black", "brown", "but", "came",
            "did", "do", "eat", "four", "get", "good", "have", "he", "into", "like",
            "must", "new", "no", "now", "on", "our", "out", "please", "pretty", "ran",
            "ride", "saw", "say", "she", "so", "soon", "that", "there", "they", "this",
            "too", "under", "want", "was", "well", "went", "what", "white", "who",
            "will", "with", "yes",
        ],
        sort_order=8,
    ),
    PresetWordList(
        id="first-grade",
        name="First Grade Sight Words",
        category=PresetCategory.SIGHT_WORDS,
        description="Common first grade words",
        words=[
            "after", "again", "an", "any", "as", "ask", "by", "could", "every", "fly",
            "from", "give", "giving", "had", "has", "her", "him", "his", "how", "just",
            "know", "let", "live", "may", "of", "old", "once", "open", "over", "put",
            "round", "some", "stop", "take", "thank", "them", "then", "think", "walk",
            "were", "when",
        ],
        sort_order=9,
    ),
    PresetWordList(
        id="family",
        name="Family Words",
        category=PresetCategory.SIGHT_WORDS,
        description="Words about family",
        words=[
            "mom", "dad", "mother", "father", "sister", "brother", "baby", "grandma",
            "grandpa", "aunt", "uncle", "cousin", "family", "home", "house", "love",
        ],
        sort_order=10,
    ),
    PresetWordList(
        id="colors",
        name="Colors",
        category=PresetCategory.SIGHT_WORDS,
        description="Color words",
        words=[
            "red", "blue", "green", "yellow", "orange", "purple", "pink", "brown",
            "black", "white", "gray", "gold", "silver",
        ],
        sort_order=11,
    ),
    PresetWordList(
        id="numbers",
        name="Numbers",
        category=PresetCategory.SIGHT_WORDS,
        description="Number words 1-20",
        words=[
            "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
            "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen",
            "seventeen", "eighteen", "nineteen", "twenty",
        ],
        sort_order=12,
    ),
    PresetWordList(
        id="animals",
        name="Animals",
        category=PresetCategory.SIGHT_WORDS,
        description="Common animal words",
        words=[
            "cat", "dog", "bird", "fish", "cow", "pig", "horse", "sheep", "duck",
            "chicken", "mouse", "rabbit", "frog", "bear", "lion", "tiger", "elephant",
            "monkey", "snake", "turtle",
        ],
        sort_order=13,
    ),
)

_BY_ID = {p.id: p for p in PRESETS}


def get_presets(category: PresetCategory | None = None) -> list[PresetWordList]:
    """Preset lists in display order, optionally of one category."""
    presets = sorted(PRESETS, key=lambda p: p.sort_order)
    if category is None:
        return presets
    return [p for p in presets if p.category == category]


def get_preset(preset_id: str) -> PresetWordList | None:
    return _BY_ID.get(preset_id)
