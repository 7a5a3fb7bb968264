# main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
import uvicorn

import config
from router import router
from auth import auth_router
from database import SessionLocal, init_db
from mailer import build_mailer
from scheduler import ReminderScheduler

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("fintasker")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    reminder_scheduler = None
    if config.ENABLE_REMINDER_SCHEDULER:
        reminder_scheduler = ReminderScheduler(
            SessionLocal, build_mailer(), config.EMAIL_USER or "noreply@fintasker.local"
        )
        reminder_scheduler.start()
    else:
        logger.info("Reminder scheduler disabled")
    app.state.reminder_scheduler = reminder_scheduler

    yield

    if reminder_scheduler is not None:
        reminder_scheduler.shutdown()


app = FastAPI(title="FinTasker API", lifespan=lifespan)

app.include_router(router, prefix="/api", tags=["finance"])
app.include_router(auth_router, prefix="/api/auth", tags=["authentication"])


@app.get("/")
def home():
    return {"message": "Welcome to FinTasker API"}


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT)
