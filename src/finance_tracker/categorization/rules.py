import re
from typing import Dict, List, Protocol

from finance_tracker.categorization.base import CategorizationRule
from finance_tracker.domain.enums import Category


def resolve_category(label: str) -> Category:
    """
    Resolve a configured category label.

    Raises:
        ValueError: If the label is not one of the fixed categories
    """
    for category in Category:
        if category.value.lower() == label.strip().lower():
            return category
    valid = ", ".join(c.value for c in Category)
    raise ValueError(f"Unknown category '{label}'. Valid categories: {valid}")


class KeywordRule(CategorizationRule):
    """
    Rule that matches keywords in merchant names.

    Case-insensitive substring matching; several keywords per category.

    Example:
        ```
        rule = KeywordRule({
            Category.FOOD: ["starbucks", "tim hortons"]
        })
        ```
    """

    def __init__(self, keyword_map: Dict[Category, List[str]]):
        super().__init__()
        self.keyword_map = keyword_map
        self._normalized_map: Dict[Category, List[str]] = {
            category: [kw.lower() for kw in keywords]
            for category, keywords in keyword_map.items()
        }

    def _find(self, merchant: str) -> Category | None:
        merchant_lower = merchant.lower()
        for category, keywords in self._normalized_map.items():
            for keyword in keywords:
                if keyword in merchant_lower:
                    return category
        return None

    def _matches(self, merchant: str) -> bool:
        return self._find(merchant) is not None

    def _get_category(self, merchant: str) -> Category:
        category = self._find(merchant)
        if category is None:
            raise RuntimeError("_get_category called but no match found")
        return category

    def __repr__(self):
        return f"KeywordRule({len(self.keyword_map)} categories)"


class RegexRule(CategorizationRule):
    """
    Rule that matches regex patterns in merchant names.

    Example:
        # Card descriptors for the same store vary: "AMZN Mktp US", "Amazon.com"
        rule = RegexRule({
            Category.SHOPPING: [r"^AMZN", r"amazon\\.com"]
        })
    """

    def __init__(self, pattern_map: Dict[Category, List[str]]):
        super().__init__()
        self.pattern_map = pattern_map
        self._compiled_patterns: Dict[Category, List[re.Pattern]] = {
            category: [re.compile(pattern, re.IGNORECASE) for pattern in patterns]
            for category, patterns in pattern_map.items()
        }

    def _find(self, merchant: str) -> Category | None:
        for category, patterns in self._compiled_patterns.items():
            for pattern in patterns:
                if pattern.search(merchant):
                    return category
        return None

    def _matches(self, merchant: str) -> bool:
        return self._find(merchant) is not None

    def _get_category(self, merchant: str) -> Category:
        category = self._find(merchant)
        if category is None:
            raise RuntimeError("_get_category called but no match found")
        return category

    def __repr__(self) -> str:
        return f"RegexRule({len(self.pattern_map)} categories)"


class UserDefinedRule(CategorizationRule):
    """
    Rule built from a list of rule definitions in config.

    Definitions are tried in the order they are listed.

    Config format:
        {
            "rules": [
                {
                    "category": "Food & Dining",
                    "patterns": ["trader joe", "safeway"],
                    "type": "keyword"
                },
                {
                    "category": "Shopping",
                    "patterns": ["^AMZN"],
                    "type": "regex"
                }
            ]
        }
    """

    def __init__(self, rules_config: List[Dict]):
        """
        Args:
            rules_config: List of rule definitions from JSON config

        Raises:
            ValueError: If a definition names an unknown category or rule type
        """
        super().__init__()
        self.rules = rules_config
        self._rules: List[CategorizationRule] = []

        for rule_def in self.rules:
            category = resolve_category(rule_def["category"])
            patterns = rule_def["patterns"]
            rule_type = rule_def.get("type", "keyword")

            if rule_type == "keyword":
                self._rules.append(KeywordRule({category: patterns}))
            elif rule_type == "regex":
                self._rules.append(RegexRule({category: patterns}))
            else:
                raise ValueError(f"Unknown rule type '{rule_type}'")

    def _matches(self, merchant: str) -> bool:
        return any(rule._matches(merchant) for rule in self._rules)

    def _get_category(self, merchant: str) -> Category:
        """Get category from the first matching rule"""
        for rule in self._rules:
            if rule._matches(merchant):
                return rule._get_category(merchant)

        raise RuntimeError("_get_category called but no match found")

    def __repr__(self) -> str:
        return f"UserDefinedRule({len(self.rules)} rules)"


class MerchantClassifier(Protocol):
    def classify_merchant(self, merchant: str) -> Category: ...


class AIClassifierRule(CategorizationRule):
    """
    Rule that asks the AI service to classify the merchant.

    Always matches when a classifier is available; the classifier itself
    falls back to OTHER when the service fails.
    """

    def __init__(self, classifier: MerchantClassifier):
        super().__init__()
        self.classifier = classifier

    def _matches(self, merchant: str) -> bool:
        return bool(merchant.strip())

    def _get_category(self, merchant: str) -> Category:
        return self.classifier.classify_merchant(merchant)


class DefaultRule(CategorizationRule):
    """
    Fallback rule that always matches.

    Should be the last rule in the chain.
    """

    def __init__(self, default_category: Category = Category.OTHER):
        super().__init__()
        self.default_category = default_category

    def _matches(self, _: str) -> bool:
        """Always matches"""
        return True

    def _get_category(self, _: str) -> Category:
        return self.default_category

    def __repr__(self) -> str:
        return f"DefaultRule({self.default_category.value})"
