"""Group routes: roster, expenses, balances and settlement plans."""
from flask import Blueprint, request, jsonify, current_app

from splitledger.core import Ledger
from splitledger.core.settlement_service import SettlementPlanner, instructions_for, apply_plan
from splitledger.extensions import get_store
from splitledger.groups.models import Group
from splitledger.utils.enums import ExpenseCategory
from splitledger.utils.validators import require_keys, parse_category

groups_bp = Blueprint("groups", __name__)

_EXPENSE_FIELDS = ("title", "amount", "category", "payer", "split_among")


def _planner():
    return SettlementPlanner(current_app.config["SETTLEMENT_EPSILON"])


def _balances_payload(ledger):
    return {
        "balances": {m: str(b) for m, b in ledger.net_balances().items()},
        "total_spent": str(ledger.total_spent()),
    }


@groups_bp.route("/", methods=["POST"])
def create_group():
    """
    Create a group.

    Request body:
    {
        "name": "Trip",
        "members": ["alice", "bob"],  // optional
        "icon": "✈️"                  // optional
    }
    """
    data = request.get_json(silent=True) or {}
    require_keys(data, "name")

    ledger = Ledger(Group(name=data["name"], icon=data.get("icon", "")))
    for member in data.get("members", []):
        ledger.add_member(member)

    get_store().save(ledger)
    return jsonify(ledger.to_document()), 201


@groups_bp.route("/<group_id>", methods=["GET"])
def get_group(group_id):
    ledger = get_store().load(group_id)
    return jsonify(ledger.to_document())


@groups_bp.route("/<group_id>", methods=["DELETE"])
def delete_group(group_id):
    get_store().delete(group_id)
    return jsonify({"deleted": group_id})


@groups_bp.route("/<group_id>/members", methods=["POST"])
def add_member(group_id):
    """Request body: {"name": "carol"}"""
    data = request.get_json(silent=True) or {}
    require_keys(data, "name")

    with get_store().editing(group_id) as ledger:
        added = ledger.add_member(data["name"])
    return jsonify({"members": list(ledger.members), "added": added})


@groups_bp.route("/<group_id>/members/<name>", methods=["DELETE"])
def remove_member(group_id, name):
    with get_store().editing(group_id) as ledger:
        removed = ledger.remove_member(name)
    return jsonify({"members": list(ledger.members), "removed": removed})


@groups_bp.route("/<group_id>/expenses", methods=["POST"])
def add_expense(group_id):
    """
    Add a shared expense.

    Request body:
    {
        "payer": "alice",
        "amount": "90.00",
        "split_among": ["alice", "bob", "carol"],
        "category": "food",  // optional
        "title": "Dinner"    // optional
    }
    """
    data = request.get_json(silent=True) or {}
    require_keys(data, "payer", "amount", "split_among")

    category = parse_category(data.get("category", ExpenseCategory.OTHER.value))
    with get_store().editing(group_id) as ledger:
        expense = ledger.add_expense(
            payer=data["payer"],
            amount=data["amount"],
            split_among=data["split_among"],
            category=category,
            title=data.get("title", ""),
        )
    return jsonify(expense.to_dict()), 201


@groups_bp.route("/<group_id>/expenses/<expense_id>", methods=["PUT"])
def update_expense(group_id, expense_id):
    """Partial update; any of title, amount, category, payer, split_among."""
    data = request.get_json(silent=True) or {}
    fields = {k: data[k] for k in _EXPENSE_FIELDS if k in data}
    if "category" in fields:
        fields["category"] = parse_category(fields["category"])

    with get_store().editing(group_id) as ledger:
        expense = ledger.update_expense(expense_id, **fields)
    return jsonify(expense.to_dict())


@groups_bp.route("/<group_id>/expenses/<expense_id>", methods=["DELETE"])
def delete_expense(group_id, expense_id):
    with get_store().editing(group_id) as ledger:
        ledger.remove_expense(expense_id)
    return jsonify({"deleted": expense_id})


@groups_bp.route("/<group_id>/settlements", methods=["POST"])
def record_settlement(group_id):
    """
    Record a debt payment between two members.

    Request body:
    {
        "from": "bob",
        "to": "alice",
        "amount": "30.00"
    }
    """
    data = request.get_json(silent=True) or {}
    require_keys(data, "from", "to", "amount")

    with get_store().editing(group_id) as ledger:
        expense = ledger.record_settlement(data["from"], data["to"], data["amount"])
    return jsonify(expense.to_dict()), 201


@groups_bp.route("/<group_id>/balances", methods=["GET"])
def get_balances(group_id):
    """
    Net balance per member.

    Positive balance = is owed money
    Negative balance = owes money
    """
    ledger = get_store().load(group_id)
    return jsonify(_balances_payload(ledger))


@groups_bp.route("/<group_id>/plan", methods=["GET"])
def get_plan(group_id):
    """Who pays whom; ?member=bob narrows it to bob's payments."""
    ledger = get_store().load(group_id)
    plan = _planner().plan(ledger.net_balances())

    member = request.args.get("member")
    if member:
        plan = instructions_for(member, plan)
    return jsonify({"instructions": [i.to_dict() for i in plan]})


@groups_bp.route("/<group_id>/plan/apply", methods=["POST"])
def apply_settlement_plan(group_id):
    """Record every payment of the current plan, settling the group."""
    with get_store().editing(group_id) as ledger:
        plan = _planner().plan(ledger.net_balances())
        apply_plan(ledger, plan)

    payload = _balances_payload(ledger)
    payload["applied"] = [i.to_dict() for i in plan]
    return jsonify(payload)
