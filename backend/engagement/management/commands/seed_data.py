"""
Management command to seed the database with a demo social graph.

Every follow and like goes through the toggle engine, so the seeded
counters are consistent from the start.

Usage: python manage.py seed_data
"""

import random
from datetime import timedelta
from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.utils import timezone

from engagement.comments import add_comment, add_reply
from engagement.counters import reconcile_counters
from engagement.models import Article, Comment, Follow, Like, Post, Playlist
from engagement.posts import create_post
from engagement.services import toggle_follow, toggle_like

User = get_user_model()


class Command(BaseCommand):
    help = 'Seed the database with sample accounts, content, follows and likes'

    def add_arguments(self, parser):
        parser.add_argument('--users', type=int, default=10, help='Number of users to create')
        parser.add_argument('--articles', type=int, default=20, help='Number of articles to create')
        parser.add_argument('--posts', type=int, default=40, help='Number of posts to create')
        parser.add_argument('--comments', type=int, default=100, help='Number of comments to create')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data')
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding'
        )

    def handle(self, *args, **options):
        self.rng = random.Random(options['seed'])

        if options['clear']:
            self.stdout.write('Clearing existing data...')
            Like.objects.all().delete()
            Follow.objects.all().delete()
            Playlist.objects.all().delete()
            Comment.objects.all().delete()
            Article.objects.all().delete()
            Post.objects.all().delete()
            User.objects.filter(is_superuser=False).delete()
            # Bulk deletes bypass the counters of the surviving superusers
            reconcile_counters()

        self.stdout.write('Creating users...')
        users = self._create_users(options['users'])

        self.stdout.write('Creating follows...')
        follows = self._create_follows(users)

        self.stdout.write('Creating articles and posts...')
        articles = self._create_articles(users, options['articles'])
        posts = self._create_posts(users, options['posts'])

        self.stdout.write('Creating comments...')
        comments = self._create_comments(users, articles, options['comments'])

        self.stdout.write('Creating likes...')
        likes = self._create_likes(users, articles, comments)

        self.stdout.write(self.style.SUCCESS(
            f'Successfully created:\n'
            f'  - {len(users)} users\n'
            f'  - {follows} follows\n'
            f'  - {len(articles)} articles\n'
            f'  - {len(posts)} posts\n'
            f'  - {len(comments)} comments\n'
            f'  - {likes} likes'
        ))

    def _create_users(self, count):
        users = []
        for i in range(count):
            username = f'user{i+1}'
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username=username,
                    email=f'{username}@example.com',
                    password='password123'
                )
            users.append(user)
        return users

    def _create_follows(self, users):
        created = 0
        for user in users:
            others = [u for u in users if u.pk != user.pk]
            for author in self.rng.sample(others, k=min(3, len(others))):
                if not Follow.objects.filter(follower=user, author=author).exists():
                    toggle_follow(user.pk, author.pk)
                    created += 1
        return created

    def _create_articles(self, users, count):
        titles = [
            "Understanding database constraints",
            "Why counters drift",
            "A practical guide to pagination",
            "Notes on threaded comments",
            "Designing a follow graph",
        ]
        articles = []
        for i in range(count):
            articles.append(Article.objects.create(
                author=self.rng.choice(users),
                title=f"{self.rng.choice(titles)} #{i+1}",
                description="A sample article.",
                content="Lorem ipsum dolor sit amet, consectetur adipiscing elit.",
                created_at=timezone.now() - timedelta(hours=self.rng.randint(0, 72))
            ))
        return articles

    def _create_posts(self, users, count):
        contents = [
            "Just shipped a new article #writing",
            "Reading about #databases today",
            "Hello world #intro",
            "Anyone else love #python and #django?",
        ]
        return [create_post(self.rng.choice(users), self.rng.choice(contents)) for _ in range(count)]

    def _create_comments(self, users, articles, count):
        if not articles:
            return []
        texts = [
            "Great point! I totally agree.",
            "Can you elaborate on this?",
            "Thanks for sharing!",
            "I have a different perspective on this.",
        ]
        comments = []
        for _ in range(count):
            existing = [c for c in comments if c.depth == 0]
            # 30% chance of being a reply to an existing top-level comment
            if existing and self.rng.random() < 0.3:
                comment = add_reply(self.rng.choice(users), self.rng.choice(existing).pk, self.rng.choice(texts))
            else:
                comment = add_comment(self.rng.choice(users), self.rng.choice(articles).pk, self.rng.choice(texts))
            comments.append(comment)
        return comments

    def _create_likes(self, users, articles, comments):
        created = 0
        for kind, targets, ratio in (('article', articles, 0.5), ('comment', comments, 0.3)):
            for target in targets:
                if self.rng.random() >= ratio:
                    continue
                for liker in self.rng.sample(users, k=min(3, len(users))):
                    if toggle_like(liker.pk, target.pk, kind).liked:
                        created += 1
        return created
