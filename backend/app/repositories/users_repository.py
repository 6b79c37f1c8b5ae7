from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.user import (
    Oauth,
    User,
    UserCredentialCheck,
    UserPassport,
    UserRegisterReq,
    UserRole,
    UserToken,
)
from app.patterns.insert_user import InsertUser
from app.utils.errors import AppError, ErrorKind, translate_db_error


class UsersRepository:

    def __init__(self, db: Session):
        self.db = db

    def insert_user(self, req: UserRegisterReq, is_admin: bool) -> UserPassport:
        role = UserRole.ADMIN if is_admin else UserRole.CUSTOMER
        return InsertUser(self.db, req, role).insert().result()

    def find_one_user_by_email(self, email: str) -> UserCredentialCheck:
        row = self.db.execute(
            text("""
                SELECT
                    "id",
                    "email",
                    "password",
                    "username",
                    "role_id"
                FROM "users"
                WHERE "email" = :email;
            """),
            {"email": email},
        ).mappings().first()
        if row is None:
            raise AppError(ErrorKind.NOT_FOUND, "user not found")
        return UserCredentialCheck.model_validate(dict(row))

    def insert_oauth(self, passport: UserPassport) -> None:
        try:
            passport.token.id = str(self.db.execute(
                text("""
                    INSERT INTO "oauth" (
                        "user_id",
                        "refresh_token",
                        "access_token"
                    )
                    VALUES (:user_id, :refresh_token, :access_token)
                    RETURNING "id";
                """),
                {
                    "user_id": passport.user.id,
                    "refresh_token": passport.token.refresh_token,
                    "access_token": passport.token.access_token,
                },
            ).scalar_one())
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_db_error(e, "failed to insert oauth") from e

    def find_one_oauth(self, refresh_token: str) -> Oauth:
        row = self.db.execute(
            text("""
                SELECT
                    "id",
                    "user_id"
                FROM "oauth"
                WHERE "refresh_token" = :refresh_token;
            """),
            {"refresh_token": refresh_token},
        ).mappings().first()
        if row is None:
            raise AppError(ErrorKind.UNAUTHORIZED, "oauth not found")
        return Oauth(id=str(row["id"]), user_id=row["user_id"])

    def update_oauth(self, token: UserToken) -> None:
        try:
            self.db.execute(
                text("""
                    UPDATE "oauth" SET
                        "access_token" = :access_token,
                        "refresh_token" = :refresh_token
                    WHERE "id" = :id;
                """),
                {"id": token.id, "access_token": token.access_token, "refresh_token": token.refresh_token},
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_db_error(e, "failed to update oauth") from e

    def get_profile(self, user_id: str) -> User:
        row = self.db.execute(
            text("""
                SELECT
                    "id",
                    "email",
                    "username",
                    "role_id"
                FROM "users"
                WHERE "id" = :id;
            """),
            {"id": user_id},
        ).mappings().first()
        if row is None:
            raise AppError(ErrorKind.NOT_FOUND, "user not found")
        return User.model_validate(dict(row))

    def delete_oauth(self, oauth_id: str, user_id: Optional[str] = None) -> None:
        sql = 'DELETE FROM "oauth" WHERE "id" = :id'
        params = {"id": oauth_id}
        if user_id is not None:
            sql += ' AND "user_id" = :user_id'
            params["user_id"] = user_id
        try:
            result = self.db.execute(text(sql + ";"), params)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_db_error(e, "failed to delete oauth") from e
        if result.rowcount == 0:
            raise AppError(ErrorKind.NOT_FOUND, "oauth not found")
