"""Repository for catalog games and their tags."""
from typing import List, Optional

from sqlalchemy.orm import selectinload

from database import Game, Tag
from .base import BaseRepository


class GameRepository(BaseRepository):
    """Read access to the catalog, in identity (insertion) order.

    This is the accessor the listing engine enumerates; tags are loaded
    with each game so tag filtering needs no extra queries per game.
    """

    def all_games(self) -> List[Game]:
        """Return every game ordered by id."""
        return (self._session.query(Game)
                .options(selectinload(Game.tags))
                .order_by(Game.id)
                .all())

    def find(self, game_id: int) -> Optional[Game]:
        """Return the game with *game_id*, or ``None``."""
        return self._session.get(Game, game_id)

    def find_by_slug(self, slug: str) -> Optional[Game]:
        """Return the game whose slug is *slug*, or ``None``."""
        return self._session.query(Game).filter(Game.slug == slug).first()

    def all_tags(self) -> List[Tag]:
        """Return every tag ordered by id."""
        return self._session.query(Tag).order_by(Tag.id).all()

    def save(self, game: Game) -> None:
        """Add *game* to the session and commit."""
        self._session.add(game)
        self._commit()
        self._log.debug("Saved %r", game)
