"""
ptb.effects — effect classification.
"""

from .classify import (ByStructuralType, ClassifyHint, EffectClassifier,
                       FirstCreated, PreferOwned, PreferShared)

__all__ = [
    "EffectClassifier",
    "ClassifyHint",
    "FirstCreated",
    "PreferShared",
    "PreferOwned",
    "ByStructuralType",
]
