"""User Service — 지갑 주소 기반 로그인/가입, 프로필 조회

토큰 발급은 외부 인증 계층 담당. 여기서는 사용자 레코드만 관리한다.
"""

import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from src.core.account import AccountError, AccountResult, User, UserProfile
from src.core.logging import get_logger
from src.core.timeutil import utc_now
from src.db.models import UserModel, UserProfileModel

logger = get_logger(__name__)


class UserService:
    """사용자 CRUD"""

    def __init__(self, db_session: Session) -> None:
        self._db = db_session

    # ── 조회 ─────────────────────────────────────────────────

    def get_user(self, user_id: str) -> Optional[User]:
        """사용자 + 프로필. 없으면 None"""
        row = (
            self._db.query(UserModel)
            .options(selectinload(UserModel.profile))
            .filter(UserModel.id == user_id)
            .first()
        )
        if row is None:
            return None
        return self._user_from_orm(row)

    def get_user_by_address(self, stacks_address: str) -> Optional[User]:
        row = self._find_by_address(stacks_address)
        if row is None:
            return None
        return self._user_from_orm(row)

    # ── 로그인 / 가입 ────────────────────────────────────────

    def login(self, stacks_address: str) -> AccountResult:
        """주소로 로그인. 처음 보는 주소면 사용자 + 프로필 생성"""
        row = self._find_by_address(stacks_address)
        if row is not None:
            return AccountResult(
                success=True,
                user=self._user_from_orm(row),
                message="Login successful",
            )

        try:
            row = self._create(stacks_address)
        except IntegrityError:
            # 동시 로그인 경합에서 진 쪽: 먼저 생성된 레코드 사용
            self._db.rollback()
            row = self._find_by_address(stacks_address)
            if row is None:
                raise
            return AccountResult(
                success=True,
                user=self._user_from_orm(row),
                message="Login successful",
            )

        logger.info("Created user %s for address %s", row.id, stacks_address)
        return AccountResult(
            success=True,
            user=self._user_from_orm(row),
            created=True,
            message="User created and logged in",
        )

    def register(
        self,
        stacks_address: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> AccountResult:
        """명시적 가입. 주소/사용자명/이메일 중복이면 실패"""
        if self._find_by_address(stacks_address) is not None:
            return AccountResult(
                success=False,
                error=AccountError.ADDRESS_TAKEN,
                message="User already exists with this address",
            )
        if username and self._exists(UserModel.username == username):
            return AccountResult(
                success=False,
                error=AccountError.USERNAME_TAKEN,
                message="Username already taken",
            )
        if email and self._exists(UserModel.email == email):
            return AccountResult(
                success=False,
                error=AccountError.EMAIL_TAKEN,
                message="Email already registered",
            )

        try:
            row = self._create(stacks_address, username=username, email=email)
        except IntegrityError:
            self._db.rollback()
            logger.warning("Registration conflict for address %s", stacks_address)
            return AccountResult(
                success=False,
                error=AccountError.ADDRESS_TAKEN,
                message="User already exists with this address",
            )

        logger.info("Registered user %s (%s)", row.id, username or stacks_address)
        return AccountResult(
            success=True,
            user=self._user_from_orm(row),
            created=True,
            message="User registered successfully",
        )

    # ── 내부 ─────────────────────────────────────────────────

    def _find_by_address(self, stacks_address: str) -> Optional[UserModel]:
        return (
            self._db.query(UserModel)
            .options(selectinload(UserModel.profile))
            .filter(UserModel.stacks_address == stacks_address)
            .first()
        )

    def _exists(self, condition) -> bool:
        return self._db.query(UserModel.id).filter(condition).first() is not None

    def _create(
        self,
        stacks_address: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> UserModel:
        now = utc_now()
        row = UserModel(
            id=str(uuid.uuid4()),
            stacks_address=stacks_address,
            username=username,
            email=email,
            created_at=now,
            updated_at=now,
        )
        row.profile = UserProfileModel(
            display_name=username,
            level=1,
            experience=0,
            total_quests_completed=0,
            created_at=now,
            updated_at=now,
        )
        self._db.add(row)
        self._db.commit()
        self._db.refresh(row)
        return row

    @staticmethod
    def _user_from_orm(row: UserModel) -> User:
        profile = None
        if row.profile is not None:
            profile = UserProfile(
                user_id=row.id,
                display_name=row.profile.display_name,
                bio=row.profile.bio,
                avatar_url=row.profile.avatar_url,
                level=row.profile.level,
                experience=row.profile.experience,
                total_quests_completed=row.profile.total_quests_completed,
            )
        return User(
            user_id=row.id,
            stacks_address=row.stacks_address,
            username=row.username,
            email=row.email,
            created_at=row.created_at,
            profile=profile,
        )
