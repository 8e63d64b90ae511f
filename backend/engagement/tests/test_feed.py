"""Tests for the read side: feed, graph lists, liked items, posts and playlists."""

from django.contrib.auth.models import User
from django.test import TestCase

from engagement.exceptions import InvalidOperation, InvalidReference, NotFound
from engagement.hashtags import extract_hashtags
from engagement.models import Article, Comment, Playlist, Post
from engagement.playlists import add_article, get_playlist, remove_article
from engagement.posts import create_post, delete_post, update_post
from engagement.queries import (
    get_feed,
    get_followers,
    get_following,
    get_liked_articles,
    get_liked_comments,
    get_posts_by_hashtag,
    get_user_posts,
    paginate,
)
from engagement.services import toggle_follow, toggle_like


class FeedTestCase(TestCase):

    def setUp(self):
        self.alice = User.objects.create_user('alice', 'a@test.com', 'pass')
        self.bob = User.objects.create_user('bob', 'b@test.com', 'pass')
        self.carol = User.objects.create_user('carol', 'c@test.com', 'pass')

        self.own = create_post(self.alice, 'My own post')
        self.followed = create_post(self.bob, 'Bob speaks')
        self.stranger = create_post(self.carol, 'Carol speaks')

    def test_feed_is_follows_plus_self(self):
        toggle_follow(self.alice.id, self.bob.id)

        ids = {p.id for p in get_feed(self.alice.id)['items']}

        self.assertEqual(ids, {self.own.id, self.followed.id})

    def test_feed_newest_first(self):
        toggle_follow(self.alice.id, self.bob.id)
        newest = create_post(self.bob, 'Later')

        items = get_feed(self.alice.id)['items']

        self.assertEqual(items[0].id, newest.id)
        self.assertEqual(
            [p.created_at for p in items],
            sorted((p.created_at for p in items), reverse=True)
        )

    def test_unfollow_takes_effect_on_next_call(self):
        toggle_follow(self.alice.id, self.bob.id)
        self.assertEqual(get_feed(self.alice.id)['total'], 2)

        toggle_follow(self.alice.id, self.bob.id)

        self.assertEqual([p.id for p in get_feed(self.alice.id)['items']], [self.own.id])

    def test_feed_without_follows_is_own_posts(self):
        self.assertEqual([p.id for p in get_feed(self.carol.id)['items']], [self.stranger.id])

    def test_user_posts(self):
        self.assertEqual([p.id for p in get_user_posts(self.bob.id)['items']], [self.followed.id])
        with self.assertRaises(NotFound):
            get_user_posts(self.bob.id + 1000)


class GraphListTestCase(TestCase):

    def setUp(self):
        self.alice = User.objects.create_user('alice', 'a@test.com', 'pass')
        self.bob = User.objects.create_user('bob', 'b@test.com', 'pass')
        self.carol = User.objects.create_user('carol', 'c@test.com', 'pass')
        toggle_follow(self.alice.id, self.carol.id)
        toggle_follow(self.bob.id, self.carol.id)
        toggle_follow(self.carol.id, self.alice.id)

    def test_followers_most_recent_first(self):
        page = get_followers(self.carol.id)

        self.assertEqual([u.id for u in page['items']], [self.bob.id, self.alice.id])
        self.assertEqual(page['total'], 2)

    def test_following(self):
        self.assertEqual([u.id for u in get_following(self.carol.id)['items']], [self.alice.id])
        self.assertEqual(get_following(self.bob.id)['items'][0].account.followers_count, 2)

    def test_unknown_account_is_empty(self):
        for page in (get_followers(999999), get_following(999999)):
            self.assertEqual(page['items'], [])
            self.assertEqual(page['total'], 0)

    def test_malformed_account_id(self):
        with self.assertRaises(InvalidReference):
            get_followers(0)
        with self.assertRaises(InvalidReference):
            get_following(None)


class LikedItemsTestCase(TestCase):

    def setUp(self):
        self.author = User.objects.create_user('author', 'a@test.com', 'pass')
        self.reader = User.objects.create_user('reader', 'r@test.com', 'pass')
        self.first = Article.objects.create(author=self.author, title='First', content='Body')
        self.second = Article.objects.create(author=self.author, title='Second', content='Body')
        self.comment = Comment.objects.create(article=self.first, author=self.author, content='Hi')

    def test_liked_articles_newest_like_first(self):
        toggle_like(self.reader.id, self.second.id, 'article')
        toggle_like(self.reader.id, self.first.id, 'article')

        items = get_liked_articles(self.reader.id)['items']

        self.assertEqual([a.id for a in items], [self.first.id, self.second.id])

    def test_liked_comments(self):
        toggle_like(self.reader.id, self.comment.id, 'comment')
        toggle_like(self.reader.id, self.first.id, 'article')

        page = get_liked_comments(self.reader.id)

        self.assertEqual([c.id for c in page['items']], [self.comment.id])
        self.assertEqual(page['total'], 1)

    def test_unliked_items_disappear(self):
        toggle_like(self.reader.id, self.first.id, 'article')
        toggle_like(self.reader.id, self.first.id, 'article')

        self.assertEqual(get_liked_articles(self.reader.id)['items'], [])


class PaginateTestCase(TestCase):

    def setUp(self):
        self.user = User.objects.create_user('user', 'u@test.com', 'pass')
        for i in range(5):
            create_post(self.user, f'Post {i}')
        self.posts = Post.objects.order_by('-created_at', '-id')

    def test_page_shape(self):
        page = paginate(self.posts, page=2, page_size=2)

        self.assertEqual(len(page['items']), 2)
        self.assertEqual(page['total'], 5)
        self.assertEqual(page['page'], 2)
        self.assertEqual(page['pages'], 3)
        self.assertEqual(page['page_size'], 2)

    def test_past_the_end_is_empty(self):
        page = paginate(self.posts, page=10, page_size=2)

        self.assertEqual(page['items'], [])
        self.assertEqual(page['total'], 5)

    def test_empty_queryset(self):
        page = paginate(Post.objects.none(), page=1, page_size=2)

        self.assertEqual(page['items'], [])
        self.assertEqual(page['pages'], 0)

    def test_default_page_size(self):
        with self.settings(ENGAGEMENT={'DEFAULT_PAGE_SIZE': 3, 'MAX_PAGE_SIZE': 100}):
            self.assertEqual(len(paginate(self.posts)['items']), 3)

    def test_invalid_page_or_size(self):
        for page, page_size in ((0, 2), (1, 0), (1, 1000)):
            with self.assertRaises(InvalidOperation):
                paginate(self.posts, page=page, page_size=page_size)


class PostTestCase(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user('owner', 'o@test.com', 'pass')
        self.other = User.objects.create_user('other', 'x@test.com', 'pass')

    def test_hashtags_extracted(self):
        self.assertEqual(extract_hashtags('Hi #Django and #django, #py3!'), ['django', 'py3'])
        self.assertEqual(extract_hashtags(''), [])

        post = create_post(self.owner, 'Learning #Python')

        self.assertEqual(post.hashtags, ['python'])

    def test_hashtag_search_matches_whole_tag(self):
        tagged = create_post(self.owner, 'Learning #Python today')
        create_post(self.owner, 'Using #py as a shorthand')

        self.assertEqual([p.id for p in get_posts_by_hashtag('#PYTHON')['items']], [tagged.id])
        self.assertEqual(get_posts_by_hashtag('pyth')['total'], 0)
        with self.assertRaises(InvalidOperation):
            get_posts_by_hashtag('#')

    def test_update_reextracts_hashtags(self):
        post = create_post(self.owner, 'Old #one')

        post = update_post(self.owner, post.id, 'New #two')

        post.refresh_from_db()
        self.assertEqual(post.hashtags, ['two'])
        self.assertEqual(post.content, 'New #two')

    def test_owner_only(self):
        post = create_post(self.owner, 'Mine')

        with self.assertRaises(NotFound):
            update_post(self.other, post.id, 'Theirs')
        with self.assertRaises(NotFound):
            delete_post(self.other, post.id)

        delete_post(self.owner, post.id)
        self.assertFalse(Post.objects.exists())

    def test_content_validation(self):
        with self.assertRaises(InvalidOperation):
            create_post(self.owner, '   ')
        with self.assertRaises(InvalidOperation):
            create_post(self.owner, 'x' * 281)


class PlaylistTestCase(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user('owner', 'o@test.com', 'pass')
        self.other = User.objects.create_user('other', 'x@test.com', 'pass')
        self.article = Article.objects.create(author=self.other, title='Good read', content='Body')
        self.playlist = Playlist.objects.create(owner=self.owner, name='Later')

    def test_add_is_deduplicated(self):
        add_article(self.owner, self.playlist.id, self.article.id)

        with self.assertRaises(InvalidOperation):
            add_article(self.owner, self.playlist.id, self.article.id)
        self.assertEqual(self.playlist.articles.count(), 1)

    def test_remove_missing_member_is_noop(self):
        remove_article(self.owner, self.playlist.id, self.article.id)

        self.assertEqual(self.playlist.articles.count(), 0)

    def test_only_owner_edits(self):
        with self.assertRaises(NotFound):
            add_article(self.other, self.playlist.id, self.article.id)
        with self.assertRaises(NotFound):
            add_article(self.owner, self.playlist.id, self.article.id + 1000)

    def test_private_playlist_hidden_from_others(self):
        add_article(self.owner, self.playlist.id, self.article.id)
        Playlist.objects.filter(pk=self.playlist.pk).update(is_public=False)

        result = get_playlist(self.owner.id, self.playlist.id)
        self.assertEqual([a.id for a in result['articles']], [self.article.id])

        with self.assertRaises(NotFound):
            get_playlist(self.other.id, self.playlist.id)
        with self.assertRaises(NotFound):
            get_playlist(None, self.playlist.id)
