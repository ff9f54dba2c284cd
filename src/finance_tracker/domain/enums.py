from enum import Enum

class TransactionType(Enum):
    """How a transaction affects the monthly budget"""
    INCOME = "income"
    FIXED_BILL = "fixed_bill" # recurring, predictable
    FLEXIBLE_BILL = "flexible_bill" # recurring category, not confirmed
    SPENDING = "spending"


class Category(Enum):
    """Fixed set of categories a transaction can belong to"""
    FOOD = "Food & Dining"
    HOUSING = "Housing"
    UTILITIES = "Utilities"
    TRANSPORTATION = "Transportation"
    HEALTH = "Health & Fitness"
    PERSONAL_CARE = "Personal Care"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    PET = "Pet"
    INCOME = "Income"
    OTHER = "Other"

    @classmethod
    def from_label(cls, label) -> "Category":
        """Resolve a label to a category, falling back to OTHER"""
        if isinstance(label, Category):
            return label
        if isinstance(label, str):
            cleaned = label.strip().lower()
            for category in cls:
                if category.value.lower() == cleaned:
                    return category
        return cls.OTHER


class DocumentKind(Enum):
    """Kinds of documents the AI extraction service understands"""
    RECEIPT = "receipt"
    STATEMENT = "statement"
    PAYSTUB = "paystub"
