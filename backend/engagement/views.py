"""
DRF Views
=========

Thin HTTP layer over the engagement services. Views parse the request,
call exactly one service/query function and serialize the result.
Engagement errors propagate to engagement.exceptions.custom_exception_handler,
which maps them to status codes.

AUTHENTICATION NOTE:
--------------------
Session issuance is handled elsewhere; these views only read request.user.
Reads are public, mutations need an authenticated user.
"""

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import cascade, comments, playlists, posts, queries, services
from .exceptions import NotFound
from .serializers import (
    AccountSummarySerializer,
    ArticleSerializer,
    CommentSerializer,
    ContentSerializer,
    LikeActionSerializer,
    PaginationParamsSerializer,
    PlaylistSerializer,
    PostCreateSerializer,
    PostSerializer,
    page_response,
)


def _page_params(request):
    params = PaginationParamsSerializer(data=request.query_params)
    params.is_valid(raise_exception=True)
    return params.validated_data['page'], params.validated_data['page_size']


def _content(request, serializer_class=ContentSerializer):
    body = serializer_class(data=request.data)
    body.is_valid(raise_exception=True)
    return body.validated_data


# ============================================================================
# FOLLOW GRAPH
# ============================================================================

class FollowToggleView(APIView):
    """
    POST /api/follows/<author_id>/toggle/

    Returns: {"following": true | false}
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, author_id):
        result = services.toggle_follow(request.user.id, author_id)
        return Response(
            {'following': result.following},
            status=status.HTTP_201_CREATED if result.following else status.HTTP_200_OK
        )


class FollowStatusView(APIView):
    """GET /api/follows/<author_id>/status/"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, author_id):
        result = services.check_follow_status(request.user.id, author_id)
        return Response({'following': result.following})


class FollowersView(APIView):
    """GET /api/users/<user_id>/followers/?page=&page_size="""
    permission_classes = [permissions.AllowAny]

    def get(self, request, user_id):
        page, page_size = _page_params(request)
        result = queries.get_followers(user_id, page, page_size)
        return Response(page_response(result, AccountSummarySerializer))


class FollowingView(APIView):
    """GET /api/users/<user_id>/following/?page=&page_size="""
    permission_classes = [permissions.AllowAny]

    def get(self, request, user_id):
        page, page_size = _page_params(request)
        result = queries.get_following(user_id, page, page_size)
        return Response(page_response(result, AccountSummarySerializer))


class AccountView(APIView):
    """
    DELETE /api/users/<user_id>/

    Users may delete themselves; staff may delete anyone. For anyone else
    the account does not exist.
    """
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request, user_id):
        if request.user.id != user_id and not request.user.is_staff:
            raise NotFound("Account not found")
        cascade.delete_account(user_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserPostsView(APIView):
    """GET /api/users/<user_id>/posts/"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, user_id):
        page, page_size = _page_params(request)
        result = queries.get_user_posts(user_id, page, page_size)
        return Response(page_response(result, PostSerializer))


# ============================================================================
# LIKES
# ============================================================================

class LikeToggleView(APIView):
    """
    POST /api/likes/toggle/

    Body:
    {
        "target_type": "article" | "comment",
        "target_id": 123
    }

    Returns: {"liked": true | false}
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = LikeActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = services.toggle_like(
            request.user.id,
            serializer.validated_data['target_id'],
            serializer.validated_data['target_type']
        )
        return Response(
            {'liked': result.liked},
            status=status.HTTP_201_CREATED if result.liked else status.HTTP_200_OK
        )


class LikeStatusView(APIView):
    """GET /api/likes/<target_type>/<target_id>/status/"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, target_type, target_id):
        result = services.check_like_status(request.user.id, target_id, target_type)
        return Response({'liked': result.liked})


class LikedArticlesView(APIView):
    """GET /api/likes/articles/"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        page, page_size = _page_params(request)
        result = queries.get_liked_articles(request.user.id, page, page_size)
        return Response(page_response(result, ArticleSerializer))


class LikedCommentsView(APIView):
    """GET /api/likes/comments/"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        page, page_size = _page_params(request)
        result = queries.get_liked_comments(request.user.id, page, page_size)
        return Response(page_response(result, CommentSerializer))


# ============================================================================
# FEED & POSTS
# ============================================================================

class FeedView(APIView):
    """
    GET /api/feed/

    Posts from followed accounts and self, newest first.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        page, page_size = _page_params(request)
        result = queries.get_feed(request.user.id, page, page_size)
        return Response(page_response(result, PostSerializer))


class PostCreateView(APIView):
    """POST /api/posts/"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        data = _content(request, PostCreateSerializer)
        post = posts.create_post(request.user, data['content'], data.get('media', ''))
        return Response(PostSerializer(post).data, status=status.HTTP_201_CREATED)


class PostDetailView(APIView):
    """PATCH/DELETE /api/posts/<post_id>/  (owner only)"""
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, post_id):
        data = _content(request)
        post = posts.update_post(request.user, post_id, data['content'])
        return Response(PostSerializer(post).data)

    def delete(self, request, post_id):
        posts.delete_post(request.user, post_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class HashtagPostsView(APIView):
    """GET /api/hashtags/<tag>/"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, tag):
        page, page_size = _page_params(request)
        result = queries.get_posts_by_hashtag(tag, page, page_size)
        return Response(page_response(result, PostSerializer))


# ============================================================================
# ARTICLES & COMMENTS
# ============================================================================

class ArticleDetailView(APIView):
    """DELETE /api/articles/<article_id>/"""
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request, article_id):
        cascade.delete_article(request.user, article_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ArticleCommentsView(APIView):
    """
    GET  /api/articles/<article_id>/comments/   top-level comments
    POST /api/articles/<article_id>/comments/   {"content": "..."}
    """
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request, article_id):
        page, page_size = _page_params(request)
        result = comments.get_top_level_comments(article_id, page, page_size)
        return Response(page_response(result, CommentSerializer))

    def post(self, request, article_id):
        data = _content(request)
        comment = comments.add_comment(request.user, article_id, data['content'])
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CommentRepliesView(APIView):
    """
    GET  /api/comments/<comment_id>/replies/
    POST /api/comments/<comment_id>/replies/    {"content": "..."}
    """
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request, comment_id):
        page, page_size = _page_params(request)
        result = comments.get_replies(comment_id, page, page_size)
        return Response(page_response(result, CommentSerializer))

    def post(self, request, comment_id):
        data = _content(request)
        reply = comments.add_reply(request.user, comment_id, data['content'])
        return Response(CommentSerializer(reply).data, status=status.HTTP_201_CREATED)


class CommentDetailView(APIView):
    """PATCH/DELETE /api/comments/<comment_id>/  (author only)"""
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, comment_id):
        data = _content(request)
        comment = comments.update_comment(request.user, comment_id, data['content'])
        return Response(CommentSerializer(comment).data)

    def delete(self, request, comment_id):
        comments.delete_comment(request.user, comment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# PLAYLISTS
# ============================================================================

class PlaylistDetailView(APIView):
    """GET /api/playlists/<playlist_id>/"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, playlist_id):
        result = playlists.get_playlist(request.user.id, playlist_id)
        data = PlaylistSerializer(result['playlist']).data
        data['articles'] = ArticleSerializer(result['articles'], many=True).data
        return Response(data)


class PlaylistArticleView(APIView):
    """POST/DELETE /api/playlists/<playlist_id>/articles/<article_id>/"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, playlist_id, article_id):
        playlist = playlists.add_article(request.user, playlist_id, article_id)
        return Response(PlaylistSerializer(playlist).data)

    def delete(self, request, playlist_id, article_id):
        playlist = playlists.remove_article(request.user, playlist_id, article_id)
        return Response(PlaylistSerializer(playlist).data)
