"""
Content normalizer: translate review text when it is in the source language.

Strictly best effort. normalize() never raises; on any trouble the
original text is returned unchanged.
"""

import logging
from typing import Optional

from .language import LanguageClassifier

logger = logging.getLogger(__name__)


class ContentNormalizer:

    def __init__(self, translator=None, classifier: Optional[LanguageClassifier] = None,
                 enabled: bool = True):
        self.translator = translator
        self.classifier = classifier or LanguageClassifier()
        self.enabled = enabled and translator is not None
        self.stats = {
            'translated': 0,
            'kept': 0,
            'failed': 0,
        }

    async def normalize(self, text: str) -> str:
        if not self.enabled or not text:
            return text

        try:
            if not self.classifier.needs_translation(text):
                self.stats['kept'] += 1
                return text

            translated = await self.translator.translate(
                text, self.classifier.source_lang, self.classifier.target_lang
            )
        except Exception as e:
            self.stats['failed'] += 1
            logger.warning(f"⚠️ Translation failed, keeping original text: {e}")
            return text

        if not translated:
            self.stats['failed'] += 1
            return text

        self.stats['translated'] += 1
        logger.info(
            f"🌐 Translated review text {self.classifier.source_lang}->"
            f"{self.classifier.target_lang} ({len(text)} chars)"
        )
        return translated
