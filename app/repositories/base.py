"""Repository base class used by all concrete repositories."""
import logging

from sqlalchemy.exc import SQLAlchemyError


class BaseRepository:
    """Wraps one SQLAlchemy session.

    Sub-classes query through ``self._session`` and call :meth:`_commit` to
    flush their changes.  The caller owns the session: repositories never
    open or close it.

    A failed commit is rolled back and the error re-raised, so the session
    stays usable and the caller still learns about the failure.
    """

    def __init__(self, session) -> None:
        self._session = session
        self._log = logging.getLogger(f'catalog.repository.{type(self).__name__}')

    def _commit(self) -> None:
        """Commit the session, rolling back on failure."""
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._log.error("Commit failed, rolling back: %s", exc)
            self._session.rollback()
            raise
