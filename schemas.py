# schemas.py
from pydantic import BaseModel, constr, field_validator
from datetime import datetime
from typing import Optional, Dict

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class UserCreate(BaseModel):
    name: constr(min_length=1, max_length=100)
    email: constr(min_length=3, max_length=254)
    password: constr(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class UserLogin(BaseModel):
    email: str
    password: str


class UserPublic(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic


class Settings(BaseModel):
    id: int
    name: str
    email: str
    daily_spending_limit: float
    monthly_savings_target: float
    minimum_balance: float
    daily_expense_reminder_time: str
    daily_trutime_reminder_time: str
    weekly_reminder_day: str
    weekly_reminder_time: str
    enable_trutime_reminder: bool
    enable_weekly_worksheet_reminder: bool

    class Config:
        from_attributes = True


class SettingsUpdate(BaseModel):
    """Partial settings update; reminder slots are kept exactly as sent."""

    name: Optional[str] = None
    daily_spending_limit: Optional[float] = None
    monthly_savings_target: Optional[float] = None
    minimum_balance: Optional[float] = None
    daily_expense_reminder_time: Optional[str] = None
    daily_trutime_reminder_time: Optional[str] = None
    weekly_reminder_day: Optional[str] = None
    weekly_reminder_time: Optional[str] = None
    enable_trutime_reminder: Optional[bool] = None
    enable_weekly_worksheet_reminder: Optional[bool] = None


class TransactionCreate(BaseModel):
    type: str
    amount: float
    category: constr(min_length=1)
    description: Optional[str] = None
    date: constr(pattern=DATE_PATTERN)
    time: constr(pattern=TIME_PATTERN)

    @field_validator("date")
    @classmethod
    def real_calendar_date(cls, value):
        return _checked(value, "%Y-%m-%d", "date")

    @field_validator("time")
    @classmethod
    def real_clock_time(cls, value):
        return _checked(value, "%H:%M", "time")


def _checked(value, fmt, label):
    # \d also matches non-ASCII digits, which strptime accepts as well
    if not value.isascii():
        raise ValueError(f"Invalid {label}: {value}")
    try:
        datetime.strptime(value, fmt)
    except ValueError:
        raise ValueError(f"Invalid {label}: {value}")
    return value


class TransactionResponse(TransactionCreate):
    id: int
    user_id: int

    class Config:
        from_attributes = True


class Dashboard(BaseModel):
    today: str
    today_income: float
    today_expense: float
    month_income: float
    month_expense: float
    month_balance: float
    total_income: float
    total_expense: float
    total_balance: float
    savings: float
    savings_progress: float
    category_totals: Dict[str, float]
    daily_limit_exceeded: bool
    below_minimum_balance: bool
