"""SqlProgressionRepository 테스트 — 변환, 유일 제약 처리, 프로필 카운터"""

from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from src.core.quest import UserProgress
from src.db.models import UserBadgeModel, UserProfileModel, UserProgressModel
from src.db.repository import SqlProgressionRepository
from src.services.user_service import UserService

NOW = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture()
def repo_setup(seeded_session):
    db = seeded_session
    user = UserService(db).login("SP3FBR2AGK5H9QBDH3EEN6DF8EK8JY7RX8QJ5SVTE").user
    return SqlProgressionRepository(db), db, user.user_id


def _progress(user_id, quest_id="quest-1") -> UserProgress:
    return UserProgress(user_id=user_id, quest_id=quest_id, started_at=NOW)


class TestQuestRead:
    def test_get_quest_with_steps_and_rewards(self, repo_setup):
        repo, db, user_id = repo_setup
        quest = repo.get_quest("quest-1")
        assert quest.step_count == 2
        assert [r.reward_type for r in quest.rewards] == ["NFT_BADGE", "EXPERIENCE"]
        assert quest.rewards[0].badge_id == "first-quest-badge"

    def test_get_missing_quest(self, repo_setup):
        repo, db, user_id = repo_setup
        assert repo.get_quest("quest-99") is None


class TestProgressWrite:
    def test_add_and_get(self, repo_setup):
        repo, db, user_id = repo_setup
        assert repo.add_progress(_progress(user_id)) is True
        db.commit()

        stored = repo.get_progress(user_id, "quest-1", for_update=True)
        assert stored.current_step == 1
        assert stored.started_at == NOW

    def test_add_duplicate_returns_false(self, repo_setup):
        repo, db, user_id = repo_setup
        repo.add_progress(_progress(user_id))
        db.commit()

        assert repo.add_progress(_progress(user_id)) is False
        db.commit()
        assert db.query(UserProgressModel).count() == 1

    def test_add_for_unknown_user_raises(self, repo_setup):
        repo, db, user_id = repo_setup
        with pytest.raises(IntegrityError):
            repo.add_progress(_progress("ghost"))

    def test_update_progress(self, repo_setup):
        repo, db, user_id = repo_setup
        repo.add_progress(_progress(user_id))
        progress = repo.get_progress(user_id, "quest-1")
        progress.completed_steps.append(1)
        progress.current_step = 2

        repo.update_progress(progress)
        db.commit()
        db.expire_all()

        assert repo.get_progress(user_id, "quest-1").completed_steps == [1]

    def test_update_missing_raises(self, repo_setup):
        repo, db, user_id = repo_setup
        with pytest.raises(LookupError):
            repo.update_progress(_progress(user_id))

    def test_completed_quest_ids(self, repo_setup):
        repo, db, user_id = repo_setup
        done = _progress(user_id, "quest-1")
        done.status = "COMPLETED"
        repo.add_progress(done)
        repo.add_progress(_progress(user_id, "quest-2"))
        db.commit()

        assert repo.completed_quest_ids(user_id, ["quest-1", "quest-2"]) == {"quest-1"}
        assert repo.completed_quest_ids(user_id, []) == set()


class TestBadgeWrite:
    def test_add_badge_once(self, repo_setup):
        repo, db, user_id = repo_setup
        assert repo.add_badge(user_id, "first-quest-badge", NOW) is True
        assert repo.has_badge(user_id, "first-quest-badge") is True

    def test_unique_conflict_reported_as_held(self, repo_setup):
        repo, db, user_id = repo_setup
        db.add(UserBadgeModel(user_id=user_id, badge_id="first-quest-badge", earned_at=NOW))
        db.commit()

        assert repo.add_badge(user_id, "first-quest-badge", NOW) is False
        db.commit()
        assert db.query(UserBadgeModel).count() == 1

    def test_unknown_badge_raises(self, repo_setup):
        repo, db, user_id = repo_setup
        with pytest.raises(IntegrityError):
            repo.add_badge(user_id, "no-such-badge", NOW)


class TestProfileCounters:
    def test_increment(self, repo_setup):
        repo, db, user_id = repo_setup
        repo.increment_profile(user_id, quests_completed=1, experience=100)
        repo.increment_profile(user_id, experience=250)
        db.commit()
        db.expire_all()

        profile = db.query(UserProfileModel).filter_by(user_id=user_id).one()
        assert profile.total_quests_completed == 1
        assert profile.experience == 350
        assert profile.level == 1

    def test_missing_profile_created(self, repo_setup):
        repo, db, user_id = repo_setup
        db.query(UserProfileModel).filter_by(user_id=user_id).delete()
        db.commit()

        repo.increment_profile(user_id, experience=40)
        db.commit()

        profile = db.query(UserProfileModel).filter_by(user_id=user_id).one()
        assert profile.experience == 40


class TestTransactionScope:
    def test_rollback_on_error(self, repo_setup):
        repo, db, user_id = repo_setup
        with pytest.raises(RuntimeError):
            with repo.transaction():
                db.query(UserProfileModel).filter_by(user_id=user_id).update(
                    {UserProfileModel.experience: 999}
                )
                raise RuntimeError("boom")

        db.expire_all()
        profile = db.query(UserProfileModel).filter_by(user_id=user_id).one()
        assert profile.experience == 0
