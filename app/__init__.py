"""
Game catalog application package.

Introduces a layered architecture:

  app/models.py      — value objects shared by services and persistence.
  app/repositories/  — pure I/O: querying and persisting through a SQLAlchemy session.
  app/services/      — business logic: rating aggregation, listing queries, reviews.

``Catalog`` (in ``catalog.py``) is the integration point: it opens a session
and exposes repository and service instances bound to it (e.g.
``catalog.listing``).  Route handlers in ``catalog_web.py`` use the services
directly, keeping the HTTP layer separate from the domain.
"""
