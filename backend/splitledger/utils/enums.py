from enum import Enum

class ExpenseCategory(str, Enum):
    FOOD = "food"
    TRANSPORTATION = "transportation"
    ACCOMMODATION = "accommodation"
    HEALTH = "health"
    OTHER = "other"

class ExpenseKind(str, Enum):
    SHARED = "shared"
    PERSONAL = "personal"
