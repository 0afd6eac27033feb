"""
Job store — every read and write the service makes against the database.

The orchestrator and the API never touch sessions directly; they call
these methods. Each call:
    1. opens its own session from the factory
    2. runs one short transaction
    3. commits (or rolls back) and closes before returning

so the store is safe to call from any number of worker threads at once
without locks. Database errors are wrapped in PersistenceError.

Job writes are UPDATE statements guarded by `status = 'processing'`:
once a job has been completed or failed, no later write can touch it,
which is what keeps the terminal write the last write for a job.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import func, select, update, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.catalog import AppConfig, BackgroundStyle
from models.enums import JobStatus
from models.feedback import Feedback
from models.job import EnhancementJob
from models.user import User
from worker.errors import PersistenceError

logger = logging.getLogger(__name__)

# Dialect-specific INSERT constructs; both support on_conflict_do_update
_UPSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


class JobStore:

    def __init__(self, session_factory):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Job store {action} failed: {e}")
            raise PersistenceError(f"Job store {action} failed", {"error": str(e)}) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── Jobs ────────────────────────────────────────────────────

    def create_job(self, job: EnhancementJob) -> EnhancementJob:
        with self._session("create_job") as session:
            session.add(job)
        return job

    def get_job(self, job_id: uuid.UUID) -> EnhancementJob | None:
        with self._session("get_job") as session:
            return session.get(EnhancementJob, job_id)

    def update_progress(self, job_id: uuid.UUID, progress: int) -> bool:
        """
        Store a new progress value for a PROCESSING job.

        The `progress <= new` guard means a stale write can never move
        progress backwards. Returns False if nothing was updated.
        """
        with self._session("update_progress") as session:
            result = session.execute(
                update(EnhancementJob)
                .where(
                    EnhancementJob.id == job_id,
                    EnhancementJob.status == JobStatus.PROCESSING.value,
                    EnhancementJob.progress <= progress,
                )
                .values(progress=progress)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def complete_job(self, job_id: uuid.UUID, output_payload: str) -> bool:
        """PROCESSING → COMPLETED. Returns False if the job was not PROCESSING."""
        with self._session("complete_job") as session:
            result = session.execute(
                update(EnhancementJob)
                .where(
                    EnhancementJob.id == job_id,
                    EnhancementJob.status == JobStatus.PROCESSING.value,
                )
                .values(
                    status=JobStatus.COMPLETED.value,
                    progress=100,
                    output_payload=output_payload,
                    completed_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def fail_job(self, job_id: uuid.UUID, error_message: str) -> bool:
        """PROCESSING → FAILED. Progress is left at its last value."""
        with self._session("fail_job") as session:
            result = session.execute(
                update(EnhancementJob)
                .where(
                    EnhancementJob.id == job_id,
                    EnhancementJob.status == JobStatus.PROCESSING.value,
                )
                .values(
                    status=JobStatus.FAILED.value,
                    error_message=error_message,
                    completed_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    # ── Credits ─────────────────────────────────────────────────

    def try_debit_credit(self, owner_id: str, amount: int) -> bool:
        """
        Atomically take `amount` credits from `owner_id`.

        The balance check and the decrement are the same UPDATE statement,
        so the database serializes racing debits on the row: with one
        credit left, exactly one of two concurrent calls sees rowcount 1.
        """
        with self._session("try_debit_credit") as session:
            result = session.execute(
                update(User)
                .where(User.user_id == owner_id, User.credit >= amount)
                .values(credit=User.credit - amount)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def refund_credit(self, owner_id: str, amount: int) -> bool:
        with self._session("refund_credit") as session:
            result = session.execute(
                update(User)
                .where(User.user_id == owner_id)
                .values(credit=User.credit + amount)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def add_credits(self, owner_id: str, amount: int) -> bool:
        """Add (or, with a negative amount, remove) credits without going below zero."""
        with self._session("add_credits") as session:
            result = session.execute(
                update(User)
                .where(User.user_id == owner_id, User.credit + amount >= 0)
                .values(credit=User.credit + amount)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def get_credits(self, owner_id: str) -> int | None:
        with self._session("get_credits") as session:
            return session.scalar(select(User.credit).where(User.user_id == owner_id))

    # ── Users ───────────────────────────────────────────────────

    def get_user(self, user_id: str) -> User | None:
        with self._session("get_user") as session:
            return session.get(User, user_id)

    def register_user(
        self,
        user_id: str,
        initial_credit: int,
        device_type: str | None = None,
        ip_address: str | None = None,
        location: str | None = None,
    ) -> User:
        """
        Create the user if missing, in a single INSERT ... ON CONFLICT.

        An existing user keeps its balance and its creation time; device_type,
        ip_address and location are only filled in where still NULL. Racing
        registrations of the same new id all succeed and see one row.
        """
        with self._session("register_user") as session:
            insert = _UPSERTS[session.get_bind().dialect.name]
            stmt = insert(User).values(
                user_id=user_id,
                credit=initial_credit,
                device_type=device_type,
                ip_address=ip_address,
                location=location,
                created_at=datetime.now(timezone.utc),
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[User.user_id],
                set_={
                    "created_at": func.coalesce(User.created_at, stmt.excluded.created_at),
                    "device_type": func.coalesce(User.device_type, stmt.excluded.device_type),
                    "ip_address": func.coalesce(User.ip_address, stmt.excluded.ip_address),
                    "location": func.coalesce(User.location, stmt.excluded.location),
                },
            )
            session.execute(stmt)
            return session.get(User, user_id)

    # ── Feedback ────────────────────────────────────────────────

    def submit_feedback(self, user_id: str, email: str, feedback_text: str) -> Feedback:
        feedback = Feedback(
            user_id=user_id,
            email=email,
            feedback_text=feedback_text,
            created_at=datetime.now(timezone.utc),
        )
        with self._session("submit_feedback") as session:
            session.add(feedback)
        return feedback

    # ── Catalog & runtime config ────────────────────────────────

    def list_background_styles(self) -> list[str]:
        with self._session("list_background_styles") as session:
            return list(
                session.scalars(select(BackgroundStyle.name).order_by(BackgroundStyle.name))
            )

    def get_config_value(self, key: str) -> str | None:
        with self._session("get_config_value") as session:
            return session.scalar(select(AppConfig.value).where(AppConfig.key == key))

    def set_config_value(self, key: str, value: str) -> None:
        with self._session("set_config_value") as session:
            session.merge(AppConfig(key=key, value=value))

    def ping(self) -> None:
        with self._session("ping") as session:
            session.execute(text("SELECT 1"))
