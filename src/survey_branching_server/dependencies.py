"""FastAPI dependency injection — DB sessions, survey store, engine, user identity.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on error,
matching the SDK convention where the repository calls ``flush()`` but never
``commit()``.  The branching engine is cheap to build, so each request gets
one bound to its own repository.
"""

import hmac
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from survey_branching.engine import BranchingEngine
from survey_branching.errors import ParticipationNotFound
from survey_branching.ruleset import SurveyStore
from survey_branching_db.engine import get_session_factory
from survey_branching_db.models.participation import SurveyParticipation
from survey_branching_db.repository import ParticipationRepository


# ------------------------------------------------------------------
# Database session — transaction boundary lives here
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_repository(db: AsyncSession = Depends(get_db)) -> ParticipationRepository:
    """Participation repository bound to the request's DB session."""
    return ParticipationRepository(db)


# ------------------------------------------------------------------
# Store & engine
# ------------------------------------------------------------------

def get_store(request: Request) -> SurveyStore:
    """Return the SurveyStore snapshot from ``app.state``."""
    return request.app.state.store


def get_branching_engine(
    store: SurveyStore = Depends(get_store),
    repo: ParticipationRepository = Depends(get_repository),
) -> BranchingEngine:
    """Engine reading rules/structure from the snapshot and progress from the DB."""
    return BranchingEngine(store, store, repo, repo)


# ------------------------------------------------------------------
# User identity — extracted from the X-User-ID header
# ------------------------------------------------------------------

async def get_user_id(
    request: Request,
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> str:
    """Extract respondent identity from the ``X-User-ID`` header.

    Returns 401 if the header is missing.  When ``TRUSTED_PROXY_SECRET`` is
    configured, a matching ``X-Proxy-Secret`` header is also required (403
    otherwise).
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-ID header is required")

    expected_secret: str | None = request.app.state.settings.trusted_proxy_secret
    if expected_secret:
        if not x_proxy_secret:
            raise HTTPException(status_code=403, detail="X-Proxy-Secret header is required")
        # Constant-time comparison
        if not hmac.compare_digest(x_proxy_secret, expected_secret):
            raise HTTPException(status_code=403, detail="Invalid proxy secret")

    return x_user_id


async def load_owned_participation(
    repo: ParticipationRepository, participation_id: int, user_id: str
) -> SurveyParticipation:
    """Fetch a participation row, hiding other users' rows as not found."""
    row = await repo.get_or_raise(participation_id)
    if row.user_id != user_id:
        raise ParticipationNotFound(participation_id)
    return row
