"""
Content normalization: language heuristic + translation.
"""

from .language import LanguageClassifier
from .normalizer import ContentNormalizer
from .translator import DeepLTranslator

__all__ = [
    'LanguageClassifier',
    'ContentNormalizer',
    'DeepLTranslator',
]
