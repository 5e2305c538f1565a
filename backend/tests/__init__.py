# Register every SQLModel table at test discovery time, before any test database is created
from app.models.match import Match  # noqa: F401
from app.models.participant import Participant  # noqa: F401
from app.models.round_definition import RoundDefinition  # noqa: F401
from app.models.round_pairing import RoundPairing  # noqa: F401
from app.models.tournament import Tournament  # noqa: F401
