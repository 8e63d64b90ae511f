"""
DRF Serializers
===============

Serializers here only shape output and validate request bodies. All
writes go through the service modules so counters stay exact; none of
these serializers implement create()/update().

DESIGN DECISIONS:
-----------------
1. Author/owner is always embedded as an AccountSummary (select_related
   in the query layer, so no extra queries per row)
2. Counters are read-only everywhere
3. Page envelopes are built by page_response() from a PageResult
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Article, Comment, Playlist, Post, POST_MAX_LENGTH

User = get_user_model()


class AccountSummarySerializer(serializers.ModelSerializer):
    """Minimal account representation for embedding in other objects."""
    name = serializers.SerializerMethodField()
    avatar = serializers.SerializerMethodField()
    followers_count = serializers.IntegerField(source='account.followers_count', read_only=True, default=0)
    following_count = serializers.IntegerField(source='account.following_count', read_only=True, default=0)

    class Meta:
        model = User
        fields = ['id', 'username', 'name', 'avatar', 'followers_count', 'following_count']
        read_only_fields = fields

    def get_name(self, obj):
        return obj.get_full_name() or obj.username

    def get_avatar(self, obj):
        account = getattr(obj, 'account', None)
        if account is None or not account.avatar:
            return None
        return account.avatar.url


class ArticleSerializer(serializers.ModelSerializer):
    author = AccountSummarySerializer(read_only=True)

    class Meta:
        model = Article
        fields = [
            'id',
            'title',
            'slug',
            'description',
            'thumbnail',
            'author',
            'views',
            'like_count',
            'comment_count',
            'created_at'
        ]
        read_only_fields = fields


class CommentSerializer(serializers.ModelSerializer):
    """
    Comment with live reply_count.

    reply_count comes from the COUNT annotation in comments._thread_queryset();
    comments built elsewhere report 0.
    """
    author = AccountSummarySerializer(read_only=True)
    reply_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Comment
        fields = [
            'id',
            'article',
            'content',
            'author',
            'parent',
            'depth',
            'like_count',
            'reply_count',
            'created_at',
            'updated_at'
        ]
        read_only_fields = fields


class PostSerializer(serializers.ModelSerializer):
    owner = AccountSummarySerializer(read_only=True)

    class Meta:
        model = Post
        fields = ['id', 'content', 'media', 'hashtags', 'owner', 'created_at', 'updated_at']
        read_only_fields = fields


class PlaylistSerializer(serializers.ModelSerializer):
    owner = AccountSummarySerializer(read_only=True)

    class Meta:
        model = Playlist
        fields = ['id', 'name', 'description', 'is_public', 'owner', 'created_at']
        read_only_fields = fields


# ============================================================================
# REQUEST BODIES
# ============================================================================

class ContentSerializer(serializers.Serializer):
    """Body of comment/reply/post create and edit requests."""
    content = serializers.CharField(allow_blank=True, trim_whitespace=True)


class PostCreateSerializer(ContentSerializer):
    content = serializers.CharField(max_length=POST_MAX_LENGTH, allow_blank=True, trim_whitespace=True)
    media = serializers.URLField(required=False, allow_blank=True)


class LikeActionSerializer(serializers.Serializer):
    """
    Serializer for like toggle requests.

    Target kind and existence are checked by the toggle engine
    (InvalidTargetKind, NotFound), not here.
    """
    target_type = serializers.CharField()
    target_id = serializers.IntegerField(min_value=1)


class PaginationParamsSerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    page_size = serializers.IntegerField(min_value=1, required=False, default=None, allow_null=True)


def page_response(result, serializer_class, context=None) -> dict:
    """PageResult -> JSON-ready page envelope."""
    return {
        'items': serializer_class(result['items'], many=True, context=context or {}).data,
        'total': result['total'],
        'page': result['page'],
        'pages': result['pages'],
        'page_size': result['page_size'],
    }
