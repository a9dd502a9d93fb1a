"""Wolf captions: mark the sentence boundaries of free-text captions with a synthetic `".,"` separator.

Booru-style tag captions are split on commas, but free-text descriptions contain sentences that should be treated as
tokens of their own. Rewriting every sentence-ending period to `".,"` lets the tokenizer split on sentence boundaries
just like it splits on tag separators:

```
>>> rewrite_sentence_boundaries("furry, solo. the character is standing in a forest.")
'furry, solo., the character is standing in a forest.,'
```

Abbreviations and decimal numbers are masked before the boundary rule is applied so that their periods are not
mistaken for sentence endings.
"""

import re
import typing

from caption_dropout.transforms.tokenize_caption import normalize_separators, tokenize_caption

WOLF_SEPARATOR = ".,"
TAG_SEPARATOR_DEFAULT = "|||"

# Abbreviations that introduce a name. They are never treated as the end of a sentence.
TITLE_ABBREVIATIONS = ["Mr.", "Mrs.", "Ms.", "Dr.", "Prof.", "Rev.", "Hon.", "St."]

# Abbreviations that may also end a sentence, e.g. "They moved to the U.S.A. Then ...".
ABBREVIATIONS = [
    # Latin
    "etc.",
    "vs.",
    "e.g.",
    "i.e.",
    "et al.",
    # Time
    "a.m.",
    "p.m.",
    # Geographical
    "U.S.",
    "U.K.",
    "U.S.A.",
    "N.Y.",
    # Academic
    "Ph.D.",
    "B.A.",
    "M.A.",
    "M.S.",
    "B.S.",
    # Other
    "k.k.",
    "Inc.",
    "Ltd.",
    "Jr.",
    "Sr.",
]


def _abbreviation_pattern(abbreviations: list[str]) -> re.Pattern:
    # Longest first, so that "U.S.A." wins over "U.S." and "Mrs." over "Mr.".
    alternatives = "|".join(re.escape(a) for a in sorted(abbreviations, key=len, reverse=True))
    return re.compile(rf"(?<![\w.])(?:{alternatives})")


_TITLE_RE = _abbreviation_pattern(TITLE_ABBREVIATIONS)
_ABBREVIATION_RE = _abbreviation_pattern(ABBREVIATIONS)
_DECIMAL_RE = re.compile(r"\d+\.\d+")
# What may follow an abbreviation that ends a sentence.
_NEXT_SENTENCE_RE = re.compile(r"\s+[A-Z]|\s*$")
# A period followed by whitespace and more text, or a period at the end of the text.
_SENTENCE_END_RE = re.compile(r"\.(?=\s+\S|\s*$)")

# Placeholder delimiters are drawn from the Unicode private use areas.
_PRIVATE_USE_RANGES = [range(0xE000, 0xF900), range(0xF0000, 0xFFFFE), range(0x100000, 0x10FFFE)]


def _unused_private_use_chars(text: str, count: int) -> list[str]:
    """Return the first `count` private use characters that do not occur in `text`."""
    used = set(text)
    chars = []
    for code_points in _PRIVATE_USE_RANGES:
        for code_point in code_points:
            if chr(code_point) not in used:
                chars.append(chr(code_point))
                if len(chars) == count:
                    return chars
    raise ValueError("The caption uses every private use character, so placeholders can not be built.")


class _PlaceholderMask:
    """Replaces spans of text with indexed placeholders and restores them afterwards."""

    def __init__(self, text: str):
        # The delimiters never occur in `text`, so restore(...) only ever matches placeholders.
        self._open, self._close = _unused_private_use_chars(text, 2)
        self._placeholder_re = re.compile(f"{re.escape(self._open)}(\\d+){re.escape(self._close)}")
        self._originals: list[str] = []

    def placeholder(self, original: str) -> str:
        self._originals.append(original)
        return f"{self._open}{len(self._originals) - 1}{self._close}"

    def mask_titles(self, text: str) -> str:
        return _TITLE_RE.sub(lambda m: self.placeholder(m.group(0)), text)

    def mask_abbreviations(self, text: str) -> str:
        def replace(m: re.Match) -> str:
            abbreviation = m.group(0)
            if _NEXT_SENTENCE_RE.match(m.string, m.end()):
                # Leave the final period visible so that it can end the sentence.
                return self.placeholder(abbreviation[:-1]) + "."
            return self.placeholder(abbreviation)

        return _ABBREVIATION_RE.sub(replace, text)

    def mask_decimals(self, text: str) -> str:
        return _DECIMAL_RE.sub(lambda m: self.placeholder(m.group(0)), text)

    def restore(self, text: str) -> str:
        return self._placeholder_re.sub(lambda m: self._originals[int(m.group(1))], text)


def _mark_sentence_ends(text: str) -> str:
    return _SENTENCE_END_RE.sub(WOLF_SEPARATOR, text)


def rewrite_sentence_boundaries(caption: str, tag_separator: str = TAG_SEPARATOR_DEFAULT) -> str:
    """Rewrite sentence-ending periods to `".,"`.

    A sentence ends at a period that is followed by whitespace and more text, or at a period at the end of the caption.
    Periods that are already followed by a comma are left as-is. Title abbreviations ("Dr.", "Mr.", ...) and decimal
    numbers never end a sentence. Other abbreviations ("U.S.A.", "p.m.", ...) only end a sentence if they are followed
    by whitespace and an uppercase letter, or by the end of the caption.

    If the caption contains `tag_separator`, everything up to and including its first occurrence is treated as a tag
    prefix and left untouched.

    Args:
        caption (str): The caption to rewrite.
        tag_separator (str, optional): The separator between a tag prefix and the description. Defaults to "|||".

    Returns:
        str: The rewritten caption.
    """
    if not caption or not caption.strip():
        return ""

    tag_prefix = ""
    description = caption
    if tag_separator and tag_separator in caption:
        tag_part, description = caption.split(tag_separator, 1)
        tag_prefix = tag_part + tag_separator

    mask = _PlaceholderMask(description)
    masked = mask.mask_titles(description)
    masked = mask.mask_abbreviations(masked)
    masked = mask.mask_decimals(masked)
    return tag_prefix + mask.restore(_mark_sentence_ends(masked))


def with_wolf_separator(separators: typing.Optional[typing.Sequence[str]] = None) -> list[str]:
    """Return the effective separators with `".,"` appended, if it is not already present."""
    separators = normalize_separators(separators)
    if WOLF_SEPARATOR not in separators:
        separators.append(WOLF_SEPARATOR)
    return separators


def tokenize_wolf_caption(caption: str, separators: typing.Optional[typing.Sequence[str]] = None) -> list[str]:
    """Tokenize a rewritten Wolf caption with `separators` plus the `".,"` sentence separator."""
    return tokenize_caption(caption, with_wolf_separator(separators))


class WolfCaptionTransform:
    """A transform that rewrites the sentence boundaries of the caption field of an example."""

    def __init__(self, field_name: str, tag_separator: str = TAG_SEPARATOR_DEFAULT):
        self._field_name = field_name
        self._tag_separator = tag_separator

    def __call__(self, data: typing.Dict[str, typing.Any]) -> typing.Dict[str, typing.Any]:
        data[self._field_name] = rewrite_sentence_boundaries(data[self._field_name], self._tag_separator)
        return data
