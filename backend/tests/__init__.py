# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from ladder.models.match import LadderMatch  # noqa: F401
from ladder.models.player import LadderPlayer  # noqa: F401
from ladder.models.setting import LadderSetting  # noqa: F401
