from abc import ABC, abstractmethod
from typing import Iterator, Optional

from finance_tracker.domain.enums import Category

class CategorizationRule(ABC):
    """
    A link in the merchant categorization chain.

    Rules are linked most specific first. The first rule whose matcher
    accepts the merchant decides the category; a chain that ends without
    a match yields None, so engines terminate it with a DefaultRule.

        rules = UserDefinedRule(user_rules)
        rules.set_next(AIClassifierRule(client)).set_next(DefaultRule())
        rules.categorize("NETFLIX.COM")
    """

    def __init__(self):
        self.next_rule: Optional['CategorizationRule'] = None

    def set_next(self, rule: 'CategorizationRule') -> 'CategorizationRule':
        """Link the rule tried after this one and return it for chaining"""
        self.next_rule = rule
        return rule

    def chain(self) -> Iterator['CategorizationRule']:
        """This rule followed by every rule linked after it"""
        rule: Optional[CategorizationRule] = self
        while rule is not None:
            yield rule
            rule = rule.next_rule

    @abstractmethod
    def _matches(self, merchant: str) -> bool:
        """True if this rule can categorize the merchant"""

    @abstractmethod
    def _get_category(self, merchant: str) -> Category:
        """Category for a merchant this rule matched"""

    def categorize(self, merchant: str) -> Optional[Category]:
        """
        Walk the chain from this rule.

        Args:
            merchant: Merchant or payer name as entered or extracted

        Returns:
            Category from the first matching rule, or None
        """
        for rule in self.chain():
            if rule._matches(merchant):
                return rule._get_category(merchant)
        return None

    def __repr__(self):
        return f"{self.__class__.__name__}()"
