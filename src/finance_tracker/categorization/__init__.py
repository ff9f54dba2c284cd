"""
Merchant categorization for the finance tracker.

Uses a chain of responsibility: configurable keyword/regex rules first,
then the AI classifier, then the 'Other' default.

Quick Start:
    >>> from finance_tracker.categorization import CategorizationEngine
    >>>
    >>> engine = CategorizationEngine()
    >>> category = engine.categorize("NETFLIX.COM")
"""
from finance_tracker.categorization.categorizer import CategorizationEngine, suggest_type
from finance_tracker.categorization.base import CategorizationRule
from finance_tracker.categorization.rules import (
    AIClassifierRule,
    DefaultRule,
    KeywordRule,
    RegexRule,
    UserDefinedRule,
)

__all__ = [
    "CategorizationEngine",
    "suggest_type",
    "CategorizationRule",
    "AIClassifierRule",
    "DefaultRule",
    "KeywordRule",
    "RegexRule",
    "UserDefinedRule",
]
