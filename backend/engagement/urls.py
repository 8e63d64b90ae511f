"""
Engagement App URL Configuration
"""
from django.urls import path
from .views import (
    AccountView,
    ArticleCommentsView,
    ArticleDetailView,
    CommentDetailView,
    CommentRepliesView,
    FeedView,
    FollowersView,
    FollowingView,
    FollowStatusView,
    FollowToggleView,
    HashtagPostsView,
    LikedArticlesView,
    LikedCommentsView,
    LikeStatusView,
    LikeToggleView,
    PlaylistArticleView,
    PlaylistDetailView,
    PostCreateView,
    PostDetailView,
    UserPostsView,
)

urlpatterns = [
    # Feed
    path('feed/', FeedView.as_view(), name='feed'),

    # Follow graph
    path('follows/<int:author_id>/toggle/', FollowToggleView.as_view(), name='follow-toggle'),
    path('follows/<int:author_id>/status/', FollowStatusView.as_view(), name='follow-status'),
    path('users/<int:user_id>/', AccountView.as_view(), name='account'),
    path('users/<int:user_id>/followers/', FollowersView.as_view(), name='followers'),
    path('users/<int:user_id>/following/', FollowingView.as_view(), name='following'),
    path('users/<int:user_id>/posts/', UserPostsView.as_view(), name='user-posts'),

    # Likes
    path('likes/toggle/', LikeToggleView.as_view(), name='like-toggle'),
    path('likes/articles/', LikedArticlesView.as_view(), name='liked-articles'),
    path('likes/comments/', LikedCommentsView.as_view(), name='liked-comments'),
    path('likes/<str:target_type>/<int:target_id>/status/', LikeStatusView.as_view(), name='like-status'),

    # Posts
    path('posts/', PostCreateView.as_view(), name='post-create'),
    path('posts/<int:post_id>/', PostDetailView.as_view(), name='post-detail'),
    path('hashtags/<str:tag>/', HashtagPostsView.as_view(), name='hashtag-posts'),

    # Articles & comments
    path('articles/<int:article_id>/', ArticleDetailView.as_view(), name='article-detail'),
    path('articles/<int:article_id>/comments/', ArticleCommentsView.as_view(), name='article-comments'),
    path('comments/<int:comment_id>/', CommentDetailView.as_view(), name='comment-detail'),
    path('comments/<int:comment_id>/replies/', CommentRepliesView.as_view(), name='comment-replies'),

    # Playlists
    path('playlists/<int:playlist_id>/', PlaylistDetailView.as_view(), name='playlist-detail'),
    path('playlists/<int:playlist_id>/articles/<int:article_id>/', PlaylistArticleView.as_view(),
         name='playlist-article'),
]
