from app.models.user import (
    AdminTokenResponse,
    UserClaims,
    UserCredential,
    UserPassport,
    UserRegisterReq,
    UserRole,
    UserToken,
    User,
)
from app.repositories.users_repository import UsersRepository
from app.services.auth import TokenKind, get_password_hash, new_auth, parse_token, repeat_token, verify_password
from app.utils.errors import AppError, ErrorKind
from app.utils.logger import logger


class UserService:

    def __init__(self, repo: UsersRepository):
        self.repo = repo

    def _insert(self, req: UserRegisterReq, is_admin: bool) -> UserPassport:
        req = req.model_copy(update={"password": get_password_hash(req.password)})
        return self.repo.insert_user(req, is_admin)

    def insert_customer(self, req: UserRegisterReq) -> UserPassport:
        return self._insert(req, is_admin=False)

    def insert_admin(self, req: UserRegisterReq) -> UserPassport:
        return self._insert(req, is_admin=True)

    def get_passport(self, req: UserCredential) -> UserPassport:
        try:
            user = self.repo.find_one_user_by_email(req.email)
        except AppError as e:
            if e.kind == ErrorKind.NOT_FOUND:
                raise AppError(ErrorKind.UNAUTHORIZED, "email or password is invalid") from e
            raise
        if not verify_password(req.password, user.password):
            logger.warning(f"Failed sign in for {req.email}")
            raise AppError(ErrorKind.UNAUTHORIZED, "email or password is invalid")

        claims = UserClaims(id=user.id, role=user.role_id)
        passport = UserPassport(
            user=User(id=user.id, email=user.email, username=user.username, role_id=user.role_id),
            token=UserToken(
                access_token=new_auth(TokenKind.ACCESS, claims).sign_token(),
                refresh_token=new_auth(TokenKind.REFRESH, claims).sign_token(),
            ),
        )
        self.repo.insert_oauth(passport)
        logger.info(f"User {user.id} signed in")
        return passport

    def refresh_passport(self, refresh_token: str) -> UserPassport:
        """Rotate a session's tokens; the new refresh token keeps the old expiry."""
        payload = parse_token(TokenKind.REFRESH, refresh_token)
        oauth = self.repo.find_one_oauth(refresh_token)
        profile = self.repo.get_profile(oauth.user_id)

        claims = UserClaims(id=profile.id, role=profile.role_id)
        token = UserToken(
            id=oauth.id,
            access_token=new_auth(TokenKind.ACCESS, claims).sign_token(),
            refresh_token=repeat_token(claims, payload.exp),
        )
        self.repo.update_oauth(token)
        return UserPassport(user=profile, token=token)

    def delete_oauth(self, oauth_id: str, claims: UserClaims) -> None:
        # admins may revoke any session
        owner = None if claims.role == UserRole.ADMIN else claims.id
        self.repo.delete_oauth(oauth_id, owner)

    def get_profile(self, user_id: str) -> User:
        return self.repo.get_profile(user_id)

    def generate_admin_token(self) -> AdminTokenResponse:
        return AdminTokenResponse(token=new_auth(TokenKind.ADMIN).sign_token())
