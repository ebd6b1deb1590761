"""
Lightweight language heuristic.

Counts indicator words of two languages; no model, no network. Good
enough to tell an English review from a French one, which is all the
translation step needs.
"""

import re
from typing import Dict, FrozenSet, Tuple

MIN_TEXT_LENGTH = 10
MIN_SCORE = 2.0
AFFIX_WEIGHT = 0.5

LEXICONS: Dict[str, FrozenSet[str]] = {
    'en': frozenset({
        'the', 'and', 'that', 'this', 'with', 'have', 'has', 'had', 'will',
        'would', 'they', 'them', 'their', 'there', 'from', 'what', 'which',
        'were', 'was', 'been', 'is', 'are', 'it', 'its', 'of', 'to', 'you',
        'your', 'but', 'not', 'just', 'very', 'really', 'about', 'because',
        'game', 'movie', 'story', 'great', 'good', 'bad',
    }),
    'fr': frozenset({
        'le', 'la', 'les', 'de', 'du', 'des', 'un', 'une', 'et', 'est',
        'dans', 'pour', 'pas', 'que', 'qui', 'sur', 'avec', 'ce', 'cette',
        'il', 'elle', 'ils', 'nous', 'vous', 'mais', 'très', 'bien', 'aussi',
        'tout', 'sont', 'été', 'être', 'avoir', 'jeu', 'histoire', 'bon',
        'mauvais', 'trop', 'peu', 'leur', 'au', 'aux',
    }),
}

AFFIXES: Dict[str, Tuple[str, ...]] = {
    'en': ('ing', 'ly', 'ed'),
    'fr': ('ment', 'eux', 'euse', 'ées'),
}

_WORD = re.compile(r"[a-zàâäçéèêëîïôöùûüÿœæ']+")


def tokenize(text: str):
    return _WORD.findall(text.lower())


def score(text: str, language: str) -> float:
    """Indicator hits: 1 per lexicon word, AFFIX_WEIGHT per affixed word."""
    lexicon = LEXICONS.get(language, frozenset())
    affixes = AFFIXES.get(language, ())

    total = 0.0
    for word in tokenize(text):
        if word in lexicon:
            total += 1
        elif len(word) > 4 and word.endswith(affixes):
            total += AFFIX_WEIGHT
    return total


class LanguageClassifier:
    """Decides whether a text is written in source_lang rather than target_lang."""

    def __init__(self, source_lang: str = 'en', target_lang: str = 'fr',
                 min_length: int = MIN_TEXT_LENGTH, min_score: float = MIN_SCORE):
        self.source_lang = source_lang.lower()
        self.target_lang = target_lang.lower()
        self.min_length = min_length
        self.min_score = min_score

    def needs_translation(self, text: str) -> bool:
        if not text or len(text.strip()) < self.min_length:
            return False

        source_score = score(text, self.source_lang)
        target_score = score(text, self.target_lang)
        return source_score > target_score and source_score >= self.min_score
