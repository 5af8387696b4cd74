"""시즌 랭크 판정"""

from src.core.progression.models import SeasonalRank, SeasonalRankTier, SeasonalReward

# 점수 하한 내림차순
SEASONAL_RANK_THRESHOLDS: tuple[tuple[int, SeasonalRankTier], ...] = (
    (10000, SeasonalRankTier.GRANDMASTER),
    (7500, SeasonalRankTier.MASTER),
    (5000, SeasonalRankTier.DIAMOND),
    (3000, SeasonalRankTier.PLATINUM),
    (1500, SeasonalRankTier.GOLD),
    (500, SeasonalRankTier.SILVER),
)

SEASONAL_REWARDS: dict[SeasonalRankTier, tuple[SeasonalReward, ...]] = {
    SeasonalRankTier.GRANDMASTER: (
        SeasonalReward("RUSH", 50000, "legendary"),
        SeasonalReward("NFT", 1, "legendary"),
    ),
    SeasonalRankTier.MASTER: (
        SeasonalReward("RUSH", 25000, "epic"),
        SeasonalReward("NFT", 1, "legendary"),
    ),
    SeasonalRankTier.DIAMOND: (
        SeasonalReward("RUSH", 15000, "epic"),
        SeasonalReward("Cosmetic", 1, "epic"),
    ),
    SeasonalRankTier.PLATINUM: (
        SeasonalReward("RUSH", 10000, "rare"),
        SeasonalReward("PowerUp", 5, "rare"),
    ),
    SeasonalRankTier.GOLD: (
        SeasonalReward("RUSH", 5000, "rare"),
        SeasonalReward("PowerUp", 3, "rare"),
    ),
    SeasonalRankTier.SILVER: (
        SeasonalReward("RUSH", 2000, "common"),
        SeasonalReward("PowerUp", 2, "common"),
    ),
    SeasonalRankTier.BRONZE: (SeasonalReward("RUSH", 500, "common"),),
}


def calculate_seasonal_rank(points: int, season: int = 1) -> SeasonalRank:
    """시즌 포인트 → 랭크 + 해당 랭크 보상."""
    tier = SeasonalRankTier.BRONZE
    for threshold, candidate in SEASONAL_RANK_THRESHOLDS:
        if points >= threshold:
            tier = candidate
            break
    return SeasonalRank(
        season=season,
        tier=tier,
        points=points,
        rewards=SEASONAL_REWARDS[tier],
    )
