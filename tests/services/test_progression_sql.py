"""QuestProgressionService 통합 테스트 (인메모리 SQLite + 시드 카탈로그)"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from src.core.locks import KeyedLock
from src.core.quest import ProgressionError, ProgressStatus
from src.db.models import UserBadgeModel, UserProfileModel, UserProgressModel
from src.db.repository import SqlProgressionRepository
from src.services.progression_service import QuestProgressionService
from src.services.user_service import UserService


@pytest.fixture()
def sql_setup(seeded_session):
    """시드 DB + 사용자 1명 + 엔진"""
    db = seeded_session
    user = UserService(db).login("SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7").user
    engine = QuestProgressionService(SqlProgressionRepository(db), KeyedLock())
    return engine, db, user.user_id


def _profile(db, user_id) -> UserProfileModel:
    db.expire_all()
    return db.query(UserProfileModel).filter_by(user_id=user_id).one()


class TestStartQuestSql:
    def test_start_persists_record(self, sql_setup):
        engine, db, user_id = sql_setup

        result = engine.start_quest(user_id, "quest-1")

        assert result.success is True
        assert [s.step_number for s in result.progress.quest.steps] == [1, 2]
        row = db.query(UserProgressModel).filter_by(user_id=user_id).one()
        assert row.status == ProgressStatus.IN_PROGRESS.value
        assert row.completed_steps == []

    def test_duplicate_start(self, sql_setup):
        engine, db, user_id = sql_setup
        engine.start_quest(user_id, "quest-1")

        result = engine.start_quest(user_id, "quest-1")

        assert result.error == ProgressionError.ALREADY_STARTED
        assert db.query(UserProgressModel).filter_by(user_id=user_id).count() == 1

    def test_prerequisites_gate(self, sql_setup):
        engine, db, user_id = sql_setup
        assert (
            engine.start_quest(user_id, "quest-2").error
            == ProgressionError.PREREQUISITES_NOT_MET
        )

        engine.start_quest(user_id, "quest-1")
        engine.complete_step(user_id, "quest-1", 1)
        engine.complete_step(user_id, "quest-1", 2)

        assert engine.start_quest(user_id, "quest-2").success is True
        # quest-3은 quest-1, quest-2 모두 필요
        assert (
            engine.start_quest(user_id, "quest-3").error
            == ProgressionError.PREREQUISITES_NOT_MET
        )


class TestCompleteStepSql:
    def test_full_completion(self, sql_setup):
        engine, db, user_id = sql_setup
        engine.start_quest(user_id, "quest-1")

        r1 = engine.complete_step(user_id, "quest-1", 1, payload={"wallet": "hiro"})
        r2 = engine.complete_step(user_id, "quest-1", 2)

        assert r1.quest_completed is False
        assert r2.quest_completed is True
        assert r2.rewards.badges_awarded == ["first-quest-badge"]
        assert r2.rewards.experience_awarded == 100

        db.expire_all()
        row = db.query(UserProgressModel).filter_by(user_id=user_id).one()
        assert row.status == ProgressStatus.COMPLETED.value
        assert row.completed_steps == [1, 2]
        assert row.current_step == 2
        assert row.completed_at is not None

        profile = _profile(db, user_id)
        assert profile.total_quests_completed == 1
        # 보상 100 + 완료 기본 100
        assert profile.experience == 200

    def test_tokens_reward_skipped(self, sql_setup):
        engine, db, user_id = sql_setup
        for quest_id, steps in (("quest-1", 2), ("quest-2", 1)):
            engine.start_quest(user_id, quest_id)
            for n in range(1, steps + 1):
                result = engine.complete_step(user_id, quest_id, n)

        assert result.rewards.badges_awarded == ["wallet-master-badge"]
        assert [r.reward_type for r in result.rewards.skipped] == ["TOKENS"]
        assert _profile(db, user_id).total_quests_completed == 2

    def test_sequential_rule(self, sql_setup):
        engine, db, user_id = sql_setup
        engine.start_quest(user_id, "quest-1")

        result = engine.complete_step(user_id, "quest-1", 2)

        assert result.error == ProgressionError.PREVIOUS_STEPS_REQUIRED
        db.expire_all()
        row = db.query(UserProgressModel).filter_by(user_id=user_id).one()
        assert row.completed_steps == []

    def test_complete_after_completed_no_change(self, sql_setup):
        engine, db, user_id = sql_setup
        engine.start_quest(user_id, "quest-1")
        engine.complete_step(user_id, "quest-1", 1)
        engine.complete_step(user_id, "quest-1", 2)

        result = engine.complete_step(user_id, "quest-1", 2)

        assert result.error == ProgressionError.ALREADY_COMPLETED
        profile = _profile(db, user_id)
        assert profile.total_quests_completed == 1
        assert profile.experience == 200
        assert db.query(UserBadgeModel).filter_by(user_id=user_id).count() == 1


class TestRewardsSql:
    def test_badge_failure_does_not_block_completion(self, sql_setup):
        engine, db, user_id = sql_setup
        engine.start_quest(user_id, "quest-1")
        engine.complete_step(user_id, "quest-1", 1)

        with patch.object(
            SqlProgressionRepository,
            "add_badge",
            side_effect=SQLAlchemyError("mint failed"),
        ):
            result = engine.complete_step(user_id, "quest-1", 2)

        assert result.success is True
        assert result.quest_completed is True
        assert len(result.rewards.failures) == 1
        assert result.rewards.failures[0].reward.badge_id == "first-quest-badge"
        assert result.rewards.experience_awarded == 100

        db.expire_all()
        assert db.query(UserBadgeModel).filter_by(user_id=user_id).count() == 0
        row = db.query(UserProgressModel).filter_by(user_id=user_id).one()
        assert row.status == ProgressStatus.COMPLETED.value
        assert _profile(db, user_id).experience == 200

    def test_badge_issuance_idempotent(self, sql_setup):
        engine, db, user_id = sql_setup
        repo = SqlProgressionRepository(db)
        quest = repo.get_quest("quest-1")

        first = engine.award_quest_rewards(user_id, quest)
        db.commit()
        second = engine.award_quest_rewards(user_id, quest)
        db.commit()

        assert first.badges_awarded == ["first-quest-badge"]
        assert second.badges_awarded == []
        assert second.badges_already_held == ["first-quest-badge"]
        assert db.query(UserBadgeModel).filter_by(user_id=user_id).count() == 1


class TestUserProgressSql:
    def test_list_progress(self, sql_setup):
        engine, db, user_id = sql_setup
        engine.start_quest(user_id, "quest-1")
        engine.complete_step(user_id, "quest-1", 1)
        engine.complete_step(user_id, "quest-1", 2)
        engine.start_quest(user_id, "quest-2")

        records = engine.get_user_progress(user_id)

        assert [p.quest_id for p in records] == ["quest-2", "quest-1"]
        assert records[1].quest.title == "First Steps in Stacks"
