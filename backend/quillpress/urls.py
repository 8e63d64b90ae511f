"""
QuillPress URL Configuration
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def api_root(request):
    """Root endpoint with API information."""
    return JsonResponse({
        'message': 'QuillPress API Server',
        'version': '1.0',
        'endpoints': {
            'feed': '/api/feed/',
            'follow': '/api/follows/<author_id>/toggle/',
            'followers': '/api/users/<id>/followers/',
            'following': '/api/users/<id>/following/',
            'like': '/api/likes/toggle/',
            'comments': '/api/articles/<id>/comments/',
            'replies': '/api/comments/<id>/replies/',
            'posts': '/api/posts/',
            'playlists': '/api/playlists/<id>/',
        },
        'admin': '/admin/',
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('admin/', admin.site.urls),
    path('api/', include('engagement.urls')),
]
