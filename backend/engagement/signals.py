"""
Django Signals for the engagement layer.

These signals ARE used for:
- Account creation when a user registers (external flow creates the user)
- Comment creation/deletion (to keep article.comment_count exact)

Like and follow counters are NOT maintained here; the toggle engine
adjusts them inside the same transaction that writes the edge.

Signals also fire on QuerySet.delete() and on FK cascades (Django collects
the instances first when receivers exist), so every path that removes a
comment - delete_comment, delete_article, delete_account - decrements the
article exactly once per removed row.
"""

from django.conf import settings
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from . import counters
from .models import Account, Comment


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_account(sender, instance, created, **kwargs):
    if created:
        Account.objects.get_or_create(user=instance)


@receiver(post_save, sender=Comment)
def increment_comment_count(sender, instance, created, **kwargs):
    if created:
        counters.adjust('article', instance.article_id, 'comment_count', +1)


@receiver(post_delete, sender=Comment)
def decrement_comment_count(sender, instance, **kwargs):
    counters.adjust('article', instance.article_id, 'comment_count', -1)
