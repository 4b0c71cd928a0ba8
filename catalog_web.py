#!/usr/bin/env python3
"""
Game Catalog Web - JSON API for the game catalog.
Serves catalog listings and game ratings, and accepts new reviews.
"""

import logging
import argparse
import os
from functools import wraps
from typing import Dict, Optional

from flask import Flask, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

import catalog
import database
from app.models import InvalidRatingError
from app.repositories import GameRepository, ReviewRepository
from app.services import (InvalidListingParameter, ListingQueryEngine,
                          ReviewService, parse_listing_args)

# Initialize logging early so database module logs are captured
config = catalog.load_config(os.getenv('CATALOG_CONFIG', 'config.json'))
catalog.setup_logging(config.get('log_level', 'INFO'))
web_logger = logging.getLogger('catalog.web')
if not web_logger.handlers:
    try:
        os.makedirs('logs', exist_ok=True)
        fh = logging.FileHandler('logs/catalog_web.log')
        fh.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
        web_logger.addHandler(fh)
    except OSError:
        web_logger.warning('Could not create log file handler')

# Bind the configured database and create tables at import
database.configure_engine(config.get('database_url'))
if database.init_db():
    web_logger.info('Database initialized successfully')
else:
    web_logger.warning('Database initialization reported failure')

app = Flask(__name__)


def with_session(f):
    """Decorator opening a database session for the request as ``db``."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        db = database.SessionLocal()
        try:
            return f(db, *args, **kwargs)
        finally:
            db.close()
    return decorated_function


def _game_summary(game) -> Dict:
    return {
        'id': game.id,
        'title': game.title,
        'slug': game.slug,
        'average_rating': game.average_rating,
        'tags': [{'id': tag.id, 'name': tag.name} for tag in game.tags],
    }


def _game_detail(game) -> Dict:
    data = _game_summary(game)
    data.update({
        'description': game.description,
        'release_date': game.release_date.isoformat() if game.release_date else None,
        'rating_distribution': game.rating_distribution.as_dict(),
        'review_count': len(game.reviews),
    })
    return data


def _parse_rating(value) -> Optional[int]:
    """Return *value* as an int if it is a JSON integer or a string of digits."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value)
    return None


def _review_view(review) -> Dict:
    return {
        'id': review.id,
        'username': review.user.username if review.user else None,
        'rating': review.rating,
        'comment': review.comment,
    }


# -----------------------------------------------------------------------
# Catalog endpoints
# -----------------------------------------------------------------------

@app.route('/api/games', methods=['GET'])
@with_session
def api_list_games(db):
    """Return one page of the catalog.

    Query: page, limit, sorting (Default|Title), direction
    (Ascending|Descending), filter[search], filter[tags][]
    """
    query = parse_listing_args(request.args,
                               default_page_size=config.get('default_page_size', 10))
    engine = ListingQueryEngine(
        GameRepository(db),
        max_page_size=config.get('max_page_size'),
        window=config.get('pagination_window', 3),
    )
    try:
        page = engine.run(query)
    except InvalidListingParameter as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(page.to_dict(_game_summary))


@app.route('/api/games/<slug>', methods=['GET'])
@with_session
def api_get_game(db, slug: str):
    """Return a game with its rating aggregates and reviews."""
    game = GameRepository(db).find_by_slug(slug)
    if game is None:
        return jsonify({'error': 'Game not found'}), 404
    data = _game_detail(game)
    data['reviews'] = [_review_view(r) for r in game.reviews]
    return jsonify(data)


@app.route('/api/games/<slug>/reviews', methods=['POST'])
@with_session
def api_post_review(db, slug: str):
    """Add a review to a game.

    Body JSON: {"username": "...", "rating": 1-5, "comment": "optional text"}
    """
    game = GameRepository(db).find_by_slug(slug)
    if game is None:
        return jsonify({'error': 'Game not found'}), 404

    data = request.get_json(silent=True) or {}
    rating = data.get('rating')
    comment = data.get('comment', '')

    if rating is None:
        return jsonify({'error': 'rating is required (1-5)'}), 400
    rating = _parse_rating(rating)
    if rating is None:
        return jsonify({'error': 'rating must be an integer'}), 400

    user = database.get_user_by_username(db, data.get('username', ''))
    if user is None:
        return jsonify({'error': 'Unknown user'}), 400

    service = ReviewService(ReviewRepository(db))
    try:
        review = service.submit(game, user, rating, comment)
    except InvalidRatingError as e:
        db.rollback()
        web_logger.error("Stored reviews of %s are invalid: %s", slug, e)
        return jsonify({'error': 'Stored reviews for this game are invalid'}), 500
    except SQLAlchemyError as e:
        db.rollback()
        web_logger.error("Could not save review for %s: %s", slug, e)
        return jsonify({'error': 'Could not save review'}), 500

    if review is None:
        return jsonify({'error': 'rating must be between 1 and 5'}), 400

    return jsonify({
        'success': True,
        'review': _review_view(review),
        'average_rating': game.average_rating,
        'rating_distribution': game.rating_distribution.as_dict(),
    }), 201


@app.route('/api/tags', methods=['GET'])
@with_session
def api_get_tags(db):
    """Return every tag."""
    tags = GameRepository(db).all_tags()
    return jsonify({'tags': [{'id': tag.id, 'name': tag.name} for tag in tags]})


def main():
    """Main entry point for the web API"""
    parser = argparse.ArgumentParser(description='Game Catalog web API')
    parser.add_argument('--host', default='127.0.0.1', help='Interface to bind')
    parser.add_argument('--port', type=int, default=5000, help='Port to listen on')
    args = parser.parse_args()

    web_logger.info('Starting Game Catalog web API on %s:%d', args.host, args.port)
    app.run(host=args.host, port=args.port, debug=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
