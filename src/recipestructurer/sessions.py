"""In-memory recipe sessions.

A session holds the Recipe one user is working on. Each extraction is tagged
with the session id and generation it was started for, so a result that
arrives after the user moved on is discarded instead of overwriting newer
state.
"""

import uuid
from dataclasses import dataclass, field

from recipestructurer.errors import ExtractionInProgress, SessionNotFound
from recipestructurer.logging_config import get_logger
from recipestructurer.models import Recipe

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExtractionTicket:
    """Identity of one in-flight extraction."""

    session_id: str
    generation: int
    url: str | None = None
    token: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass
class RecipeSession:
    """One user's working recipe and extraction state."""

    id: str
    recipe: Recipe | None = None
    generation: int = 0
    in_flight: ExtractionTicket | None = None


class SessionStore:
    """Process-local store of recipe sessions."""

    def __init__(self) -> None:
        self._sessions: dict[str, RecipeSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> RecipeSession:
        """Start a new empty session."""
        session = RecipeSession(id=uuid.uuid4().hex)
        self._sessions[session.id] = session
        logger.info(f"Created recipe session {session.id}")
        return session

    def get(self, session_id: str) -> RecipeSession:
        """Look up a session by id."""
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(f"Unknown recipe session: {session_id}") from None

    def remove(self, session_id: str) -> None:
        """Forget a session entirely; late results for it are discarded."""
        self._sessions.pop(session_id, None)

    def reset(self, session_id: str) -> RecipeSession:
        """Drop the current recipe and invalidate any in-flight extraction."""
        session = self.get(session_id)
        session.generation += 1
        session.recipe = None
        session.in_flight = None
        logger.info(f"Reset session {session_id} to generation {session.generation}")
        return session

    def begin_extraction(self, session_id: str, url: str | None = None) -> ExtractionTicket:
        """
        Register an extraction for a session.

        Raises:
            ExtractionInProgress: If the session already has one outstanding.
        """
        session = self.get(session_id)
        if session.in_flight is not None:
            raise ExtractionInProgress(
                f"Session {session_id} already has an extraction in progress"
            )
        ticket = ExtractionTicket(session_id=session_id, generation=session.generation, url=url)
        session.in_flight = ticket
        return ticket

    def _is_current(self, ticket: ExtractionTicket) -> bool:
        session = self._sessions.get(ticket.session_id)
        return session is not None and session.in_flight == ticket

    def complete_extraction(self, ticket: ExtractionTicket, recipe: Recipe) -> bool:
        """Apply an extraction result if its ticket is still current."""
        if not self._is_current(ticket):
            logger.warning(
                f"Discarding stale extraction for session {ticket.session_id} "
                f"(generation {ticket.generation})"
            )
            return False

        session = self._sessions[ticket.session_id]
        session.recipe = recipe
        session.in_flight = None
        return True

    def abandon_extraction(self, ticket: ExtractionTicket) -> None:
        """Clear the in-flight marker after a failed extraction."""
        if self._is_current(ticket):
            self._sessions[ticket.session_id].in_flight = None

    def require_recipe(self, session_id: str) -> Recipe:
        """Return the session's recipe or fail if none has been parsed yet."""
        session = self.get(session_id)
        if session.recipe is None:
            raise SessionNotFound(f"Session {session_id} has no recipe yet")
        return session.recipe

    def update_recipe(self, session_id: str, recipe: Recipe) -> None:
        """Store a new recipe snapshot produced by an edit."""
        self.get(session_id).recipe = recipe
