"""
Tests for the toggle engine

Focus areas:
1. Toggle semantics (ABSENT <-> PRESENT, counters follow the edge)
2. Concurrency protection (racing inserts resolve to a serial order)
3. Error taxonomy and degraded status reads
"""

import threading
from unittest import skipUnless
from unittest.mock import patch
from django.conf import settings
from django.contrib.auth.models import User
from django.contrib.contenttypes.models import ContentType
from django.db import DatabaseError, IntegrityError, OperationalError, connection
from django.test import TestCase, TransactionTestCase

from engagement import services
from engagement.exceptions import (
    ConflictRetryable,
    InvalidOperation,
    InvalidReference,
    InvalidTargetKind,
    NotFound,
    StorageUnavailable,
)
from engagement.models import Account, Article, Comment, Follow, Like
from engagement.services import (
    check_follow_status,
    check_like_status,
    toggle_follow,
    toggle_like,
)


def _account(user):
    return Account.objects.get(user=user)


class FollowToggleTestCase(TestCase):
    """Follow edges and the follower/following counters move together."""

    def setUp(self):
        self.alice = User.objects.create_user('alice', 'a@test.com', 'pass')
        self.bob = User.objects.create_user('bob', 'b@test.com', 'pass')

    def test_follow_creates_edge_and_bumps_both_counters(self):
        result = toggle_follow(self.alice.id, self.bob.id)

        self.assertTrue(result.following)
        self.assertTrue(Follow.objects.filter(follower=self.alice, author=self.bob).exists())
        self.assertEqual(_account(self.alice).following_count, 1)
        self.assertEqual(_account(self.bob).followers_count, 1)

    def test_toggle_twice_returns_to_start(self):
        """Follow -> Unfollow leaves no edge and both counters back at 0."""
        toggle_follow(self.alice.id, self.bob.id)
        result = toggle_follow(self.alice.id, self.bob.id)

        self.assertFalse(result.following)
        self.assertFalse(Follow.objects.exists())
        self.assertEqual(_account(self.alice).following_count, 0)
        self.assertEqual(_account(self.bob).followers_count, 0)

    def test_follow_is_directional(self):
        toggle_follow(self.alice.id, self.bob.id)

        self.assertTrue(check_follow_status(self.alice.id, self.bob.id).following)
        self.assertFalse(check_follow_status(self.bob.id, self.alice.id).following)
        self.assertEqual(_account(self.alice).followers_count, 0)

    def test_self_follow_rejected(self):
        with self.assertRaises(InvalidOperation):
            toggle_follow(self.alice.id, self.alice.id)
        self.assertFalse(Follow.objects.exists())
        self.assertEqual(_account(self.alice).followers_count, 0)

    def test_follow_unknown_author(self):
        with self.assertRaises(NotFound):
            toggle_follow(self.alice.id, self.bob.id + 1000)

    def test_follow_from_unknown_account(self):
        with self.assertRaises(NotFound):
            toggle_follow(self.bob.id + 1000, self.bob.id)
        self.assertEqual(_account(self.bob).followers_count, 0)

    def test_malformed_ids(self):
        for bad in (0, -1, None, '2', True):
            with self.assertRaises(InvalidReference):
                toggle_follow(self.alice.id, bad)
        with self.assertRaises(InvalidReference):
            toggle_follow(None, self.bob.id)

    def test_status_degrades_to_false_on_storage_error(self):
        toggle_follow(self.alice.id, self.bob.id)

        with patch.object(Follow.objects, 'filter', side_effect=DatabaseError('down')):
            with self.assertLogs('engagement.services', level='WARNING'):
                result = check_follow_status(self.alice.id, self.bob.id)

        self.assertFalse(result.following)


class LikeToggleTestCase(TestCase):
    """Like edges on articles and comments."""

    def setUp(self):
        self.author = User.objects.create_user('author', 'a@test.com', 'pass')
        self.reader = User.objects.create_user('reader', 'r@test.com', 'pass')
        self.article = Article.objects.create(author=self.author, title='Article', content='Body')
        self.comment = Comment.objects.create(article=self.article, author=self.author, content='First')

    def test_like_article(self):
        result = toggle_like(self.reader.id, self.article.id, 'article')

        self.assertTrue(result.liked)
        self.article.refresh_from_db()
        self.assertEqual(self.article.like_count, 1)
        self.assertTrue(check_like_status(self.reader.id, self.article.id, 'article').liked)

    def test_like_unlike_like(self):
        self.assertTrue(toggle_like(self.reader.id, self.comment.id, 'comment').liked)
        self.assertFalse(toggle_like(self.reader.id, self.comment.id, 'comment').liked)
        self.assertTrue(toggle_like(self.reader.id, self.comment.id, 'comment').liked)

        self.comment.refresh_from_db()
        self.assertEqual(self.comment.like_count, 1)

    def test_even_number_of_toggles_nets_out(self):
        for _ in range(6):
            toggle_like(self.reader.id, self.article.id, 'article')

        self.article.refresh_from_db()
        self.assertEqual(self.article.like_count, 0)
        self.assertFalse(Like.objects.exists())

    def test_like_count_matches_edges_across_users(self):
        others = [User.objects.create_user(f'u{i}', f'u{i}@test.com', 'pass') for i in range(3)]
        for user in others:
            toggle_like(user.id, self.article.id, 'article')
        toggle_like(others[0].id, self.article.id, 'article')

        self.article.refresh_from_db()
        article_ct = ContentType.objects.get_for_model(Article)
        edges = Like.objects.filter(content_type=article_ct, object_id=self.article.id).count()
        self.assertEqual(self.article.like_count, edges)
        self.assertEqual(edges, 2)

    def test_article_and_comment_likes_are_separate(self):
        """Same numeric id on different kinds must not collide."""
        toggle_like(self.reader.id, self.article.id, 'article')
        toggle_like(self.reader.id, self.comment.id, 'comment')

        self.assertEqual(Like.objects.filter(user=self.reader).count(), 2)

    def test_self_like_allowed(self):
        result = toggle_like(self.author.id, self.article.id, 'article')

        self.assertTrue(result.liked)
        self.article.refresh_from_db()
        self.assertEqual(self.article.like_count, 1)

    def test_unknown_target_kind(self):
        with self.assertRaises(InvalidTargetKind):
            toggle_like(self.reader.id, self.article.id, 'post')
        self.assertFalse(check_like_status(self.reader.id, self.article.id, 'post').liked)

    def test_unknown_target(self):
        with self.assertRaises(NotFound):
            toggle_like(self.reader.id, self.article.id + 1000, 'article')

    def test_like_from_unknown_account(self):
        with self.assertRaises(NotFound):
            toggle_like(self.reader.id + 1000, self.article.id, 'article')
        self.assertFalse(Like.objects.exists())

    def test_like_status_degrades_on_storage_error(self):
        toggle_like(self.reader.id, self.article.id, 'article')

        with patch.object(Like.objects, 'filter', side_effect=DatabaseError('down')):
            with self.assertLogs('engagement.services', level='WARNING'):
                result = check_like_status(self.reader.id, self.article.id, 'article')

        self.assertFalse(result.liked)


class ToggleRaceTestCase(TestCase):
    """
    Deterministic replay of a lost insert race.

    The concurrent request is simulated by running one real flip just
    before ours fails, exactly as the committed state would look to the
    loser of the race.
    """

    def setUp(self):
        self.author = User.objects.create_user('author', 'a@test.com', 'pass')
        self.reader = User.objects.create_user('reader', 'r@test.com', 'pass')
        self.article = Article.objects.create(author=self.author, title='Race', content='Body')

    def test_lost_race_is_retried_against_committed_state(self):
        """Two identical toggles in flight: one likes, the other unlikes."""
        real_flip = services._flip_edge
        calls = []

        def racing_flip(model, lookup, counter_targets):
            if not calls:
                calls.append('raced')
                # the other request commits first
                real_flip(model, lookup, counter_targets)
                raise ConflictRetryable('lost insert race')
            return real_flip(model, lookup, counter_targets)

        with patch('engagement.services._flip_edge', side_effect=racing_flip):
            with self.assertLogs('engagement.services', level='INFO'):
                result = toggle_like(self.reader.id, self.article.id, 'article')

        self.assertFalse(result.liked)
        self.article.refresh_from_db()
        self.assertEqual(self.article.like_count, 0)
        self.assertFalse(Like.objects.exists())

    def test_integrity_error_never_reaches_caller(self):
        """Every insert rejected: counters resync from the edge table."""
        Article.objects.filter(pk=self.article.pk).update(like_count=5)
        engagement = {**settings.ENGAGEMENT, 'TOGGLE_MAX_ATTEMPTS': 2}

        with self.settings(ENGAGEMENT=engagement):
            with patch.object(Like.objects, 'create', side_effect=IntegrityError('duplicate')) as create:
                result = toggle_like(self.reader.id, self.article.id, 'article')

        self.assertEqual(create.call_count, 2)
        self.assertFalse(result.liked)
        self.article.refresh_from_db()
        self.assertEqual(self.article.like_count, 0)

    def test_vanished_endpoint_after_conflict_is_not_found(self):
        """An FK failure is not a lost race: no retries, no resync."""
        def article_deleted_mid_flip(model, lookup, counter_targets):
            Article.objects.filter(pk=self.article.pk).delete()
            raise ConflictRetryable('insert rejected')

        with patch('engagement.services._flip_edge', side_effect=article_deleted_mid_flip) as flip:
            with self.assertRaises(NotFound):
                toggle_like(self.reader.id, self.article.id, 'article')

        self.assertEqual(flip.call_count, 1)

    def test_follower_deleted_mid_flip_is_not_found(self):
        def follower_deleted_mid_flip(model, lookup, counter_targets):
            User.objects.filter(pk=self.reader.pk).delete()
            raise ConflictRetryable('insert rejected')

        with patch('engagement.services._flip_edge', side_effect=follower_deleted_mid_flip):
            with self.assertRaises(NotFound):
                toggle_follow(self.reader.id, self.author.id)

        self.assertEqual(_account(self.author).followers_count, 0)

    def test_operational_error_is_storage_unavailable(self):
        with patch.object(Follow.objects, 'create', side_effect=OperationalError('disk I/O error')):
            with self.assertRaises(StorageUnavailable):
                toggle_follow(self.reader.id, self.author.id)

        self.assertEqual(_account(self.author).followers_count, 0)


@skipUnless(connection.vendor == 'postgresql', 'needs a database with concurrent writers')
class ConcurrentToggleTestCase(TransactionTestCase):
    """Real threads hammering one edge."""

    def setUp(self):
        self.author = User.objects.create_user('author', 'a@test.com', 'pass')
        self.reader = User.objects.create_user('reader', 'r@test.com', 'pass')
        self.article = Article.objects.create(author=self.author, title='Hot', content='Body')

    def test_even_concurrent_toggles_leave_no_edge(self):
        workers = 4
        barrier = threading.Barrier(workers)
        errors = []

        def worker():
            try:
                barrier.wait()
                toggle_like(self.reader.id, self.article.id, 'article')
            except Exception as exc:
                errors.append(exc)
            finally:
                connection.close()

        engagement = {**settings.ENGAGEMENT, 'TOGGLE_MAX_ATTEMPTS': 10}
        with self.settings(ENGAGEMENT=engagement):
            threads = [threading.Thread(target=worker) for _ in range(workers)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        self.assertEqual(errors, [])
        self.article.refresh_from_db()
        self.assertEqual(Like.objects.count(), 0)
        self.assertEqual(self.article.like_count, 0)
