"""퀘스트/뱃지 카탈로그 JSON 로드 + 검증

JSON 형식:
    {"badges": [...], "quests": [...]}
잘못된 항목은 경고 로그 후 건너뛴다.
"""

import json
import logging
from pathlib import Path
from typing import Iterable

from src.core.badge.models import Badge

from .enums import (
    BadgeCategory,
    BadgeRarity,
    QuestCategory,
    QuestDifficulty,
    RewardType,
    StepType,
)
from .models import Quest, QuestReward, QuestStep

logger = logging.getLogger(__name__)


def validate_step_numbers(steps: list[QuestStep]) -> None:
    """단계 번호는 1부터 연속이어야 한다. 위반 시 ValueError."""
    numbers = sorted(s.step_number for s in steps)
    if numbers != list(range(1, len(numbers) + 1)):
        raise ValueError(f"step numbers must be contiguous from 1, got {numbers}")


def validate_reward(reward: QuestReward) -> None:
    if reward.reward_type == RewardType.NFT_BADGE.value and not reward.badge_id:
        raise ValueError("NFT_BADGE reward requires badge_id")
    if reward.reward_type in (RewardType.EXPERIENCE.value, RewardType.TOKENS.value):
        if reward.amount is None or reward.amount <= 0:
            raise ValueError(f"{reward.reward_type} reward requires a positive amount")


def parse_badge(raw: dict) -> Badge:
    return Badge(
        badge_id=raw["id"],
        name=raw["name"],
        description=raw.get("description", ""),
        image_url=raw.get("image_url", ""),
        category=BadgeCategory(raw["category"]).value,
        rarity=BadgeRarity(raw["rarity"]).value,
        requirements=list(raw.get("requirements", [])),
        contract_token_id=raw.get("contract_token_id"),
        is_active=bool(raw.get("is_active", True)),
    )


def parse_quest(raw: dict) -> Quest:
    steps = [
        QuestStep(
            step_number=int(s["step_number"]),
            title=s.get("title", ""),
            description=s.get("description", ""),
            step_type=StepType(s.get("type", StepType.TUTORIAL.value)).value,
            requirements=list(s.get("requirements", [])),
            hints=list(s.get("hints", [])),
        )
        for s in raw.get("steps", [])
    ]
    validate_step_numbers(steps)

    rewards = [
        QuestReward(
            reward_type=RewardType(r["type"]).value,
            badge_id=r.get("badge_id"),
            amount=r.get("amount"),
            description=r.get("description", ""),
        )
        for r in raw.get("rewards", [])
    ]
    for reward in rewards:
        validate_reward(reward)

    return Quest(
        quest_id=raw["id"],
        title=raw["title"],
        description=raw.get("description", ""),
        category=QuestCategory(raw["category"]).value,
        difficulty=QuestDifficulty(raw["difficulty"]).value,
        estimated_time=int(raw.get("estimated_time", 0)),
        prerequisites=list(raw.get("prerequisites", [])),
        is_active=bool(raw.get("is_active", True)),
        steps=sorted(steps, key=lambda s: s.step_number),
        rewards=rewards,
    )


def load_catalog(
    path: str | Path, known_badge_ids: Iterable[str] = ()
) -> tuple[list[Badge], list[Quest]]:
    """카탈로그 파일 로드. 반환: (뱃지 목록, 퀘스트 목록)

    known_badge_ids: 파일 밖(이미 DB에 있는) 뱃지 ID. 보상 참조 검증에 함께 사용.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    badges: list[Badge] = []
    for entry in raw.get("badges", []):
        try:
            badges.append(parse_badge(entry))
        except (KeyError, ValueError) as e:
            logger.warning("Failed to load badge %s: %s", entry.get("id", "?"), e)

    quests: list[Quest] = []
    for entry in raw.get("quests", []):
        try:
            quests.append(parse_quest(entry))
        except (KeyError, ValueError) as e:
            logger.warning("Failed to load quest %s: %s", entry.get("id", "?"), e)

    # 존재하지 않는 뱃지를 가리키는 보상은 퀘스트째 제외
    badge_ids = {b.badge_id for b in badges} | set(known_badge_ids)
    valid_quests = []
    for quest in quests:
        missing = [
            r.badge_id for r in quest.rewards if r.is_badge and r.badge_id not in badge_ids
        ]
        if missing:
            logger.warning(
                "Failed to load quest %s: unknown badges %s", quest.quest_id, missing
            )
            continue
        valid_quests.append(quest)

    logger.info(
        "Loaded %d badges and %d quests from %s", len(badges), len(valid_quests), path
    )
    return badges, valid_quests
