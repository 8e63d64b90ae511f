"""
Django Admin Configuration for Engagement Models

Counters are read-only here: they are written by the toggle engine and
repaired by `manage.py reconcile_counters`, never by hand. Deleting an
account from the admin goes through the cascade coordinator so follow
and like counters of the surviving accounts stay exact.
"""
from django.contrib import admin
from .cascade import delete_account, delete_article
from .models import Account, Article, Comment, Follow, Like, Post


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ['user', 'followers_count', 'following_count', 'created_at']
    search_fields = ['user__username', 'user__email']
    readonly_fields = ['followers_count', 'following_count', 'created_at']

    def delete_model(self, request, obj):
        delete_account(obj.user_id)

    def delete_queryset(self, request, queryset):
        for user_id in list(queryset.values_list('user_id', flat=True)):
            delete_account(user_id)


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    list_display = ['title', 'author', 'like_count', 'comment_count', 'views', 'created_at']
    list_filter = ['is_published', 'created_at']
    search_fields = ['title', 'author__username']
    readonly_fields = ['like_count', 'comment_count', 'views', 'created_at', 'updated_at']

    def delete_model(self, request, obj):
        delete_article(request.user, obj.pk)

    def delete_queryset(self, request, queryset):
        for article_id in list(queryset.values_list('pk', flat=True)):
            delete_article(request.user, article_id)


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['id', 'article', 'author', 'parent_id', 'depth', 'like_count', 'created_at']
    list_filter = ['depth', 'created_at']
    search_fields = ['content', 'author__username']
    exclude = ['parent']
    readonly_fields = ['parent_id', 'depth', 'like_count', 'created_at', 'updated_at']

    # Deleting here would leave likes behind; authors use the API
    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Follow)
class FollowAdmin(admin.ModelAdmin):
    list_display = ['follower', 'author', 'created_at']
    search_fields = ['follower__username', 'author__username']

    # Edges change only through the toggle engine
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Like)
class LikeAdmin(admin.ModelAdmin):
    list_display = ['user', 'content_type', 'object_id', 'created_at']
    list_filter = ['content_type', 'created_at']
    search_fields = ['user__username']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ['id', 'owner', 'created_at']
    search_fields = ['content', 'owner__username']
