"""
Data Models for the QuillPress Engagement Layer
===============================================

Design Philosophy:
------------------
1. The relationship tables are the source of truth
   - Follow(follower, author) and Like(user, target) each carry a unique
     constraint on their key tuple
   - The database rejects a duplicate edge even when two requests race

2. Counters are a denormalized cache of those tables
   - followers_count / following_count on Account
   - like_count / comment_count on Article, like_count on Comment
   - Written only through engagement.counters (atomic F() updates)
   - PositiveIntegerField so storage refuses a negative value as well

3. Likes are polymorphic via ContentType
   - One table for article and comment likes
   - No FK to the target, so deleting a target does NOT remove its likes;
     engagement.cascade removes them explicitly

4. Comments use an Adjacency List (parent_id)
   - Two-level threads: top-level comments and their replies
   - parent has no DB constraint and DO_NOTHING on delete, so deleting
     a parent leaves its replies in place with a dangling parent_id

Indexes Strategy:
-----------------
- follow.author + follow.created_at: follower lists
- follow.follower + follow.created_at: following lists and feed resolution
- like.user + like.content_type + like.created_at: liked-items lists
- comment.article + comment.parent + comment.created_at: top-level threads
- post.owner + post.created_at: feed scan
"""

from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.text import slugify

POST_MAX_LENGTH = 280


class Account(models.Model):
    """
    Profile row carrying the follow counters for an auth user.

    Created by a post_save signal on the user model, so every user has
    exactly one. The user id is the account id used by every operation.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='account'
    )
    bio = models.CharField(max_length=200, blank=True, default='')

    # Externally stored binary assets, released on account deletion
    avatar = models.FileField(upload_to='avatars/', blank=True)
    cover_image = models.FileField(upload_to='covers/', blank=True)

    followers_count = models.PositiveIntegerField(default=0)
    following_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"Account({self.user_id})"


class Follow(models.Model):
    """Follower subscribes to author's posts."""
    follower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='following_edges'
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='follower_edges'
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['follower', 'author'],
                name='unique_follow_per_pair'
            ),
            models.CheckConstraint(
                condition=~Q(follower=F('author')),
                name='follow_not_self'
            ),
        ]
        indexes = [
            models.Index(fields=['author', '-created_at'], name='follow_author_recent_idx'),
            models.Index(fields=['follower', '-created_at'], name='follow_follower_recent_idx'),
        ]

    def __str__(self):
        return f"{self.follower_id} follows {self.author_id}"


class Article(models.Model):
    """Long-form article. Target of likes and comments."""
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='articles'
    )
    title = models.CharField(max_length=300)
    slug = models.SlugField(max_length=320, unique=True)
    description = models.CharField(max_length=500, blank=True, default='')
    content = models.TextField()
    thumbnail = models.URLField(blank=True, default='')
    tags = models.JSONField(default=list, blank=True)
    is_published = models.BooleanField(default=True)

    # Incremented on read by the article pages
    views = models.PositiveIntegerField(default=0)

    like_count = models.PositiveIntegerField(default=0)
    comment_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def save(self, *args, **kwargs):
        if not self.slug:
            base = slugify(self.title)[:300] or 'article'
            slug, n = base, 1
            while Article.objects.filter(slug=slug).exclude(pk=self.pk).exists():
                n += 1
                slug = f"{base}-{n}"
            self.slug = slug
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.title[:50]} by {self.author_id}"


class Comment(models.Model):
    """
    Comment on an article, optionally a reply to another comment.

    depth is 0 for top-level comments and parent.depth + 1 for replies;
    a reply always belongs to its parent's article. Editing only touches
    content.
    """
    article = models.ForeignKey(
        Article,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name='replies'
    )
    content = models.TextField()
    depth = models.PositiveSmallIntegerField(default=0)

    like_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['article', 'parent', '-created_at'], name='comment_thread_idx'),
            models.Index(fields=['parent', '-created_at'], name='comment_replies_idx'),
        ]

    def __str__(self):
        return f"Comment by {self.author_id} on {self.article_id}"


class Like(models.Model):
    """
    Polymorphic like on an Article or a Comment.

    CONCURRENCY STRATEGY:
    - Unique constraint (user, content_type, object_id) enforced at DB level
    - A racing duplicate insert raises IntegrityError; the toggle engine
      treats it as "the other request already transitioned this edge"
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='likes'
    )
    content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE
    )
    object_id = models.PositiveBigIntegerField()
    content_object = GenericForeignKey('content_type', 'object_id')

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'content_type', 'object_id'],
                name='unique_like_per_user_per_object'
            )
        ]
        indexes = [
            models.Index(fields=['content_type', 'object_id'], name='like_target_idx'),
            models.Index(fields=['user', 'content_type', '-created_at'], name='like_user_recent_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} liked {self.content_type_id}:{self.object_id}"


class Post(models.Model):
    """Short-form post shown in followers' feeds."""
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='posts'
    )
    content = models.CharField(max_length=POST_MAX_LENGTH)
    media = models.URLField(blank=True, default='')
    hashtags = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['owner', '-created_at'], name='post_owner_recent_idx'),
        ]

    def __str__(self):
        return f"Post {self.pk} by {self.owner_id}"


class Playlist(models.Model):
    """Ordered-by-insertion, deduplicated collection of articles."""
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='playlists'
    )
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, blank=True, default='')
    is_public = models.BooleanField(default=True)
    articles = models.ManyToManyField(Article, related_name='playlists', blank=True)

    created_at = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.name} ({self.owner_id})"


# ============================================================================
# LIKE TARGETS
# ============================================================================
# target kind -> model. Kept here so services, queries and cascade agree.
LIKE_TARGET_MODELS = {
    'article': Article,
    'comment': Comment,
}
