from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import func
from database import get_db, Transaction, User
from schemas import (
    Settings,
    SettingsUpdate,
    TransactionCreate,
    TransactionResponse,
    Dashboard,
)
from auth import get_current_user
from reminders import current_instant
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

TRANSACTION_TYPES = ["income", "expense"]


# User settings
@router.get("/user/settings", response_model=Settings)
async def get_settings(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/user/settings", response_model=Settings)
async def update_settings(
    settings: SettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field, value in settings.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)
    return current_user


# Transactions
@router.get("/transactions", response_model=list[TransactionResponse])
async def get_transactions(
    type: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Transaction).filter(Transaction.user_id == current_user.id)

    if type:
        query = query.filter(Transaction.type == type)
    # Dates are zero-padded YYYY-MM-DD strings, so they compare in calendar order
    if start_date:
        query = query.filter(Transaction.date >= start_date)
    if end_date:
        query = query.filter(Transaction.date <= end_date)

    return query.order_by(Transaction.date.desc(), Transaction.time.desc()).all()


@router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_transaction(
    transaction: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if transaction.type.lower() not in TRANSACTION_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid transaction type. Allowed values: {TRANSACTION_TYPES}",
        )

    db_transaction = Transaction(
        user_id=current_user.id,
        type=transaction.type.lower(),
        amount=transaction.amount,
        category=transaction.category,
        description=transaction.description,
        date=transaction.date,
        time=transaction.time,
    )
    db.add(db_transaction)
    db.commit()
    db.refresh(db_transaction)

    return db_transaction


@router.delete("/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    transaction = (
        db.query(Transaction)
        .filter(
            Transaction.id == transaction_id, Transaction.user_id == current_user.id
        )
        .first()
    )
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    db.delete(transaction)
    db.commit()
    return {"message": "Transaction deleted"}


# Dashboard
def _totals_by_type(query):
    totals = {"income": 0.0, "expense": 0.0}
    for tx_type, total in query.group_by(Transaction.type).all():
        if tx_type in totals:
            totals[tx_type] = total or 0.0
    return totals


@router.get("/dashboard", response_model=Dashboard)
async def get_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    now = current_instant()
    today = now.strftime("%Y-%m-%d")
    month = now.strftime("%Y-%m")

    base = db.query(Transaction.type, func.sum(Transaction.amount)).filter(
        Transaction.user_id == current_user.id
    )
    today_totals = _totals_by_type(base.filter(Transaction.date == today))
    month_totals = _totals_by_type(base.filter(Transaction.date.like(f"{month}-%")))
    all_totals = _totals_by_type(base)

    category_rows = (
        db.query(Transaction.category, func.sum(Transaction.amount))
        .filter(
            Transaction.user_id == current_user.id, Transaction.type == "expense"
        )
        .group_by(Transaction.category)
        .all()
    )

    month_balance = month_totals["income"] - month_totals["expense"]
    savings = max(0.0, month_balance)
    target = current_user.monthly_savings_target or 0
    savings_progress = (savings / target) * 100 if target else 0.0

    return {
        "today": today,
        "today_income": today_totals["income"],
        "today_expense": today_totals["expense"],
        "month_income": month_totals["income"],
        "month_expense": month_totals["expense"],
        "month_balance": month_balance,
        "total_income": all_totals["income"],
        "total_expense": all_totals["expense"],
        "total_balance": all_totals["income"] - all_totals["expense"],
        "savings": savings,
        "savings_progress": savings_progress,
        "category_totals": {category: total or 0.0 for category, total in category_rows},
        "daily_limit_exceeded": today_totals["expense"] > current_user.daily_spending_limit,
        "below_minimum_balance": month_balance < current_user.minimum_balance,
    }
