#!/usr/bin/env python3
"""
Tests for the JSON API served by catalog_web.

Run with:
    python -m pytest tests/test_catalog_web.py
"""
import importlib
import json
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# importing catalog_web binds the database; keep that in memory
os.environ.setdefault('DATABASE_URL', 'sqlite://')

import database
from app.repositories import ReviewRepository
from database import Review

from catalog_fixtures import seed_database


class WebTestCase(unittest.TestCase):

    def setUp(self):
        import catalog_web
        database.configure_engine('sqlite://')
        database.init_db()
        session = database.SessionLocal()
        try:
            seed_database(session)
        finally:
            session.close()
        catalog_web.app.config['TESTING'] = True
        self.client = catalog_web.app.test_client()

    def tearDown(self):
        database.drop_db()

    def get_json(self, url, **kwargs):
        resp = self.client.get(url, **kwargs)
        return resp, json.loads(resp.data)

    def item_titles(self, data):
        return [item['title'] for item in data['items']]

    def review_count(self):
        session = database.SessionLocal()
        try:
            return session.query(Review).count()
        finally:
            session.close()


class TestModuleDatabaseSetup(unittest.TestCase):
    """Importing catalog_web binds the configured database and creates tables."""

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self._orig = os.getcwd()
        os.chdir(self.tmp)
        self.db_path = os.path.join(self.tmp, 'configured.db')
        with open('config.json', 'w') as f:
            json.dump({'database_url': f'sqlite:///{self.db_path}'}, f)
        self._env = patch.dict(os.environ, {'CATALOG_CONFIG': 'config.json'})
        self._env.start()
        os.environ.pop('DATABASE_URL', None)

    def tearDown(self):
        import catalog_web
        database.engine.dispose()
        self._env.stop()
        os.chdir(self._orig)
        importlib.reload(catalog_web)
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_import_uses_configured_database(self):
        import catalog_web
        importlib.reload(catalog_web)
        self.assertEqual(database.engine.url.database, self.db_path)
        self.assertTrue(os.path.exists(self.db_path))

        client = catalog_web.app.test_client()
        resp = client.get('/api/games')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(json.loads(resp.data)['total'], 0)


class TestListingEndpoint(WebTestCase):

    def test_first_page(self):
        resp, data = self.get_json('/api/games')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.item_titles(data), [f'Game {i}' for i in range(10)])
        self.assertEqual(data['summary'], 'Showing 10 games from 1 to 10 of 50 games')
        self.assertEqual([l['label'] for l in data['pagination']],
                         ['1', '2', '3', '4', 'Next', 'Last page'])

    def test_page_two(self):
        _, data = self.get_json('/api/games', query_string={'page': 2})
        self.assertEqual((data['offset_from'], data['offset_to'], data['total_pages']),
                         (11, 20, 5))
        active = [l['label'] for l in data['pagination'] if l['active']]
        self.assertEqual(active, ['2'])

    def test_limit_fits_everything(self):
        _, data = self.get_json('/api/games', query_string={'limit': 50})
        self.assertEqual(len(data['items']), 50)
        self.assertIsNone(data['pagination'])

    def test_sorting_by_title(self):
        _, data = self.get_json('/api/games', query_string={'sorting': 'Title'})
        self.assertEqual(self.item_titles(data)[:6],
                         ['Game 9', 'Game 8', 'Game 7', 'Game 6', 'Game 5', 'Game 49'])

    def test_sorting_by_title_ascending(self):
        _, data = self.get_json('/api/games', query_string={'sorting': 'Title',
                                                            'direction': 'Ascending'})
        self.assertEqual(self.item_titles(data)[:4],
                         ['Game 0', 'Game 1', 'Game 10', 'Game 11'])

    def test_search(self):
        _, data = self.get_json('/api/games', query_string={'filter[search]': 'Game 49'})
        self.assertEqual(self.item_titles(data), ['Game 49'])
        self.assertEqual(data['total'], 1)
        self.assertIsNone(data['pagination'])

    def test_tags(self):
        resp = self.client.get('/api/games?filter[tags][]=1&filter[tags][]=2'
                               '&filter[tags][]=3')
        data = json.loads(resp.data)
        self.assertEqual(self.item_titles(data),
                         ['Game 0', 'Game 18', 'Game 19', 'Game 20',
                          'Game 38', 'Game 39', 'Game 40'])

    def test_items_expose_tags_and_average(self):
        _, data = self.get_json('/api/games', query_string={'limit': 1})
        item = data['items'][0]
        self.assertEqual(item['slug'], 'game-0')
        self.assertIsNone(item['average_rating'])
        self.assertEqual([t['id'] for t in item['tags']], [1, 2, 3, 4, 5])

    def test_invalid_page_is_400(self):
        resp, data = self.get_json('/api/games', query_string={'page': 0})
        self.assertEqual(resp.status_code, 400)
        self.assertIn('error', data)

    def test_non_numeric_page_falls_back(self):
        resp, data = self.get_json('/api/games', query_string={'page': 'abc'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(data['page'], 1)


class TestGameEndpoints(WebTestCase):

    def test_show_game(self):
        resp, data = self.get_json('/api/games/game-0')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(data['title'], 'Game 0')
        self.assertEqual(data['rating_distribution'],
                         {'1': 0, '2': 0, '3': 0, '4': 0, '5': 0})
        self.assertEqual(data['reviews'], [])

    def test_missing_game_is_404(self):
        resp, _ = self.get_json('/api/games/nope')
        self.assertEqual(resp.status_code, 404)

    def test_post_review(self):
        resp = self.client.post('/api/games/game-49/reviews',
                                json={'username': 'user+0', 'rating': 4,
                                      'comment': 'My comment'})
        self.assertEqual(resp.status_code, 201)
        data = json.loads(resp.data)
        self.assertEqual(data['average_rating'], 4)
        self.assertEqual(data['rating_distribution']['4'], 1)

        _, game = self.get_json('/api/games/game-49')
        last = game['reviews'][-1]
        self.assertEqual((last['username'], last['comment'], last['rating']),
                         ('user+0', 'My comment', 4))
        self.assertEqual(game['average_rating'], 4)

    def test_post_two_reviews_rounds_half_up(self):
        self.client.post('/api/games/game-1/reviews', json={'username': 'user+0', 'rating': 4})
        resp = self.client.post('/api/games/game-1/reviews',
                                json={'username': 'user+1', 'rating': 5})
        self.assertEqual(json.loads(resp.data)['average_rating'], 5)

    def test_post_review_requires_rating(self):
        resp = self.client.post('/api/games/game-1/reviews', json={'username': 'user+0'})
        self.assertEqual(resp.status_code, 400)

    def test_post_review_rejects_out_of_range(self):
        resp = self.client.post('/api/games/game-1/reviews',
                                json={'username': 'user+0', 'rating': 6})
        self.assertEqual(resp.status_code, 400)
        session = database.SessionLocal()
        try:
            self.assertEqual(session.query(Review).count(), 0)
        finally:
            session.close()

    def test_post_review_rejects_non_integer(self):
        resp = self.client.post('/api/games/game-1/reviews',
                                json={'username': 'user+0', 'rating': 'great'})
        self.assertEqual(resp.status_code, 400)

    def test_post_review_rejects_fractional_rating(self):
        resp = self.client.post('/api/games/game-1/reviews',
                                json={'username': 'user+0', 'rating': 4.7})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.review_count(), 0)

    def test_post_review_rejects_boolean_rating(self):
        resp = self.client.post('/api/games/game-1/reviews',
                                json={'username': 'user+0', 'rating': True})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.review_count(), 0)

    def test_post_review_accepts_digit_string(self):
        resp = self.client.post('/api/games/game-1/reviews',
                                json={'username': 'user+0', 'rating': '3'})
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(json.loads(resp.data)['review']['rating'], 3)

    def test_post_review_commit_failure_is_json_500(self):
        error = OperationalError('COMMIT', {}, Exception('database is locked'))
        with patch.object(ReviewRepository, 'commit', side_effect=error):
            resp = self.client.post('/api/games/game-1/reviews',
                                    json={'username': 'user+0', 'rating': 3})
        self.assertEqual(resp.status_code, 500)
        self.assertIn('error', json.loads(resp.data))
        self.assertEqual(self.review_count(), 0)

    def test_post_review_unknown_user(self):
        resp = self.client.post('/api/games/game-1/reviews',
                                json={'username': 'ghost', 'rating': 3})
        self.assertEqual(resp.status_code, 400)

    def test_post_review_missing_game(self):
        resp = self.client.post('/api/games/nope/reviews',
                                json={'username': 'user+0', 'rating': 3})
        self.assertEqual(resp.status_code, 404)

    def test_tags_endpoint(self):
        _, data = self.get_json('/api/tags')
        self.assertEqual(len(data['tags']), 20)
        self.assertEqual(data['tags'][0], {'id': 1, 'name': 'Tag 1'})


if __name__ == '__main__':
    unittest.main()
