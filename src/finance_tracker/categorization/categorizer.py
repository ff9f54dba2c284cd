from typing import Any, Dict, List, Optional

from finance_tracker.categorization.base import CategorizationRule
from finance_tracker.categorization.rules import (
    AIClassifierRule,
    DefaultRule,
    MerchantClassifier,
    UserDefinedRule,
)
from finance_tracker.config.settings import ConfigLoader, PACKAGE_CONFIG_DIR
from finance_tracker.domain.enums import Category, TransactionType
from finance_tracker.logging_setup import get_logger

logger = get_logger(__name__)

USER_RULES_CONFIG = 'user_categorization_rules.json'
BUILTIN_RULES_CONFIG = 'categorization_rules.json'

FIXED_BILL_CATEGORIES = {Category.HOUSING, Category.UTILITIES}
SPENDING_CATEGORIES = {
    Category.FOOD,
    Category.SHOPPING,
    Category.ENTERTAINMENT,
    Category.PERSONAL_CARE,
}

def suggest_type(category: Category) -> TransactionType:
    """
    Suggest a transaction type for a category.

    Housing and utilities are usually fixed bills; food, shopping,
    entertainment and personal care are discretionary; anything else is a
    flexible bill until recurrence shows otherwise.
    """
    if category == Category.INCOME:
        return TransactionType.INCOME
    if category in FIXED_BILL_CATEGORIES:
        return TransactionType.FIXED_BILL
    if category in SPENDING_CATEGORIES:
        return TransactionType.SPENDING
    return TransactionType.FLEXIBLE_BILL


class CategorizationEngine:
    """
    Main engine for categorizing merchants.

    Builds a chain of rules in priority order:
    1. User-defined rules (from config)
    2. Built-in keyword and regex rules
    3. AI classifier (when a client is supplied)
    4. Default (Other)

    Usage:
        # Production - loads from ConfigLoader, asks Gemini last
        engine = CategorizationEngine(classifier=client)

        # Testing - inject custom config
        test_config = {"rules": [...]}
        engine = CategorizationEngine(config=test_config)

        category = engine.categorize("Netflix")
        txn_type = engine.suggest_type(category)
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        use_defaults: bool = True,
        classifier: Optional[MerchantClassifier] = None,
    ):
        """
        Initialize categorization engine.

        Args:
            config: Optional user rules config. If None, loads from ConfigLoader.
            use_defaults: Whether to include built-in default rules
            classifier: Optional AI classifier consulted after the rules
        """
        self.use_defaults = use_defaults
        self.classifier = classifier
        self._rule_chain: Optional[CategorizationRule] = None

        self._build_rule_chain(config)

    def _load_user_rules_config(
        self,
        config: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        if config is not None:
            return config

        try:
            return ConfigLoader.load_config(USER_RULES_CONFIG)
        except FileNotFoundError:
            # User hasn't created custom rules yet - that's fine.
            return {"rules": []}

    def _load_builtin_rules_config(self) -> Dict[str, Any]:
        """Built-in rules always come from the package defaults folder"""
        return ConfigLoader.load_config_file(PACKAGE_CONFIG_DIR / BUILTIN_RULES_CONFIG)

    def _build_rule_chain(
        self,
        user_config: Optional[Dict[str, Any]] = None
    ) -> None:
        rules: List[CategorizationRule] = []

        user_rules = self._load_user_rules_config(user_config).get("rules", [])
        if user_rules:
            rules.append(UserDefinedRule(user_rules))

        if self.use_defaults:
            builtin_rules = self._load_builtin_rules_config().get("rules", [])
            if builtin_rules:
                rules.append(UserDefinedRule(builtin_rules))

        if self.classifier is not None:
            rules.append(AIClassifierRule(self.classifier))

        rules.append(DefaultRule(Category.OTHER))

        self._rule_chain = rules[0]
        for current, following in zip(rules, rules[1:]):
            current.set_next(following)

    def categorize(self, merchant: str) -> Category:
        """
        Categorize a single merchant.

        Example:
            >>> engine = CategorizationEngine(use_defaults=False, config={"rules": []})
            >>> engine.categorize("Somewhere")
            <Category.OTHER: 'Other'>
        """
        if not self._rule_chain:
            raise RuntimeError("Rule chain not initialized")

        category = self._rule_chain.categorize(merchant)
        assert category is not None, "Rule chain should never return None"

        logger.debug("Categorized %r as %s", merchant, category.value)
        return category

    @staticmethod
    def suggest_type(category: Category) -> TransactionType:
        return suggest_type(category)

    def get_rule_chain_info(self) -> str:
        """Describe the active rule chain, one rule per line"""
        if not self._rule_chain:
            return "No rules loaded"

        return "\n".join(
            f"{priority}. {rule}"
            for priority, rule in enumerate(self._rule_chain.chain(), start=1)
        )

    def __repr__(self) -> str:
        num_rules = len(list(self._rule_chain.chain())) if self._rule_chain else 0
        return f"CategorizationEngine({num_rules} rules in chain)"
