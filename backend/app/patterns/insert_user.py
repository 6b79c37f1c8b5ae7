from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.user import User, UserPassport, UserRegisterReq, UserRole
from app.utils.errors import AppError, ErrorKind, translate_db_error
from app.utils.logger import logger

INSERT_USER_SQL = text("""
    INSERT INTO "users" (
        "email",
        "password",
        "username",
        "role_id"
    )
    VALUES (:email, :password, :username, :role_id)
    RETURNING "id";
""")

SELECT_USER_SQL = text("""
    SELECT
        "id",
        "email",
        "username",
        "role_id"
    FROM "users"
    WHERE "id" = :id;
""")


class InsertUser:
    """Inserts a user with a fixed role; ``req.password`` must already be hashed."""

    def __init__(self, db: Session, req: UserRegisterReq, role: UserRole):
        self.db = db
        self.req = req
        self.role = role
        self.user_id = ""

    def insert(self) -> "InsertUser":
        try:
            self.user_id = self.db.execute(
                INSERT_USER_SQL,
                {
                    "email": self.req.email,
                    "password": self.req.password,
                    "username": self.req.username,
                    "role_id": int(self.role),
                },
            ).scalar_one()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_db_error(e, "failed to insert user") from e
        logger.info(f"Created user {self.user_id} role={self.role.name.lower()}")
        return self

    def result(self) -> UserPassport:
        row = self.db.execute(SELECT_USER_SQL, {"id": self.user_id}).mappings().first()
        if row is None:
            raise AppError(ErrorKind.NOT_FOUND, f"user {self.user_id} not found")
        return UserPassport(user=User.model_validate(dict(row)), token=None)
