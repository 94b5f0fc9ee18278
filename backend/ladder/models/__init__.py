from ladder.models.match import LadderMatch
from ladder.models.player import LadderPlayer
from ladder.models.setting import LadderSetting

__all__ = [
    "LadderPlayer",
    "LadderMatch",
    "LadderSetting",
]
