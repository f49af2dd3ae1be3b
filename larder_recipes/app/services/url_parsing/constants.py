"""Constants shared by the recipe parsing modules."""

# Bump whenever the normalization prompt or the merge contract changes;
# recipes stamped with an older version are fully re-normalized.
AI_PARSING_VERSION = 1

FRACTION_MAP = {
    "¼": "1/4",
    "½": "1/2",
    "¾": "3/4",
    "⅐": "1/7",
    "⅑": "1/9",
    "⅒": "1/10",
    "⅓": "1/3",
    "⅔": "2/3",
    "⅕": "1/5",
    "⅖": "2/5",
    "⅗": "3/5",
    "⅘": "4/5",
    "⅙": "1/6",
    "⅚": "5/6",
    "⅛": "1/8",
    "⅜": "3/8",
    "⅝": "5/8",
    "⅞": "7/8",
}

FRACTION_CHARS = "".join(FRACTION_MAP.keys())

# Words dropped from the front of an ingredient name ("2 cups of flour")
LEADING_CONNECTOR_WORDS = {"of", "fresh"}

# Packaging words that follow a parenthesised size: "2 (14 oz) cans chickpeas"
CONTAINER_WORDS = {
    "can",
    "cans",
    "tin",
    "tins",
    "jar",
    "jars",
    "package",
    "packages",
    "pkg",
    "pkgs",
    "packet",
    "packets",
    "bag",
    "bags",
    "box",
    "boxes",
    "bottle",
    "bottles",
    "carton",
    "cartons",
    "container",
    "containers",
    "block",
    "blocks",
}

# Never singularized, even when counted
UNCOUNTABLE_NOUNS = {
    "asparagus",
    "brussels",
    "chickpeas",
    "couscous",
    "grits",
    "hummus",
    "lentils",
    "molasses",
    "noodles",
    "oats",
    "peas",
    "series",
    "species",
    "swiss",
}

IRREGULAR_SINGULARS = {
    "potatoes": "potato",
    "tomatoes": "tomato",
    "mangoes": "mango",
    "avocados": "avocado",
    "leaves": "leaf",
    "loaves": "loaf",
    "halves": "half",
    "knives": "knife",
    "calves": "calf",
    "children": "child",
    "people": "person",
    "radishes": "radish",
    "anchovies": "anchovy",
}

INGREDIENT_HEADINGS = ("ingredient", "what you'll need", "what you will need", "you will need")
INSTRUCTION_HEADINGS = (
    "instruction",
    "direction",
    "method",
    "preparation",
    "steps",
    "how to make",
)

# Minimum list sizes for the heuristic HTML strategy
HTML_MIN_INGREDIENTS = 2
HTML_MIN_INSTRUCTIONS = 1
