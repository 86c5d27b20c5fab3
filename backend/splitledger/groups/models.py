"""Group model."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Any

from splitledger.expenses.models import SharedExpense, expense_from_dict, utcnow


@dataclass
class Group:
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    name: str = ""
    icon: str = ""
    members: List[str] = field(default_factory=list)
    expenses: List[SharedExpense] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "icon": self.icon,
            "members": list(self.members),
            "expenses": [e.to_dict() for e in self.expenses],
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Group":
        return cls(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            icon=doc.get("icon", ""),
            members=list(doc.get("members", [])),
            expenses=[expense_from_dict(e) for e in doc.get("expenses", [])],
            created_at=datetime.fromisoformat(doc["created_at"]) if doc.get("created_at") else utcnow(),
        )
