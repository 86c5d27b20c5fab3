"""Wallet routes: one person's spending outside any group."""
from flask import Blueprint, request, jsonify

from splitledger.extensions import get_store
from splitledger.utils.enums import ExpenseCategory
from splitledger.utils.validators import require_keys, parse_category

wallets_bp = Blueprint("wallets", __name__)


def _wallet_payload(wallet):
    return {
        "owner": wallet.owner,
        "expenses": [e.to_dict() for e in wallet.expenses],
        "total_spent": str(wallet.total_spent()),
        "totals_by_category": {
            category.value: str(total)
            for category, total in wallet.totals_by_category().items()
        },
    }


@wallets_bp.route("/<owner>", methods=["GET"])
def get_wallet(owner):
    """
    Personal expenses with totals.

    Returns:
    {
        "owner": "alice",
        "expenses": [...],
        "total_spent": "52.30",
        "totals_by_category": {"food": "12.30", "health": "40.00"}
    }
    """
    return jsonify(_wallet_payload(get_store().load_wallet(owner)))


@wallets_bp.route("/<owner>/expenses", methods=["POST"])
def add_expense(owner):
    """
    Add a personal expense.

    Request body:
    {
        "amount": "12.30",
        "category": "food",  // optional
        "title": "Lunch"     // optional
    }
    """
    data = request.get_json(silent=True) or {}
    require_keys(data, "amount")

    category = parse_category(data.get("category", ExpenseCategory.OTHER.value))
    with get_store().editing_wallet(owner) as wallet:
        expense = wallet.add_expense(data["amount"], category, data.get("title", ""))
    return jsonify(expense.to_dict()), 201


@wallets_bp.route("/<owner>/expenses/<expense_id>", methods=["DELETE"])
def delete_expense(owner, expense_id):
    with get_store().editing_wallet(owner) as wallet:
        wallet.remove_expense(expense_id)
    return jsonify({"deleted": expense_id})
