"""
Client catalog caching and its invalidation signals.

A client's catalog listing depends on products, categories and assignments;
any change to those drops every cached catalog. Catalog keys carry a
generation token, so backends without pattern deletion invalidate by
rotating the token instead of clearing the whole cache.
"""
import hashlib
import logging
import uuid

from django.conf import settings
from django.core.cache import cache
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

logger = logging.getLogger(__name__)

CLIENT_CATALOG_PREFIX = 'client_catalog'
CLIENT_CATALOG_GENERATION_KEY = 'catalog_generation'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def catalog_generation():
    return cache.get_or_set(CLIENT_CATALOG_GENERATION_KEY, lambda: uuid.uuid4().hex, None)


def get_cached_client_catalog(client_id, filters_dict):
    """
    Get cached catalog listing for a client
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(CLIENT_CATALOG_PREFIX, catalog_generation(), client_id, **filters_dict)
    return cache.get(cache_key), cache_key


def cache_client_catalog(cache_key, data, ttl=None):
    if ttl is None:
        ttl = settings.CLIENT_CATALOG_CACHE_TTL
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached client catalog: {cache_key}")


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern.

    django-redis exposes delete_pattern. Other backends (local memory in
    development and tests) get a new catalog generation, which orphans the
    old keys until they expire; unrelated cache entries are left alone.
    """
    try:
        if hasattr(cache, 'delete_pattern'):
            deleted = cache.delete_pattern(f"*{pattern}*")
            logger.info(f"Invalidated {deleted} cache keys matching pattern: {pattern}")
        else:
            cache.set(CLIENT_CATALOG_GENERATION_KEY, uuid.uuid4().hex, None)
            logger.info(f"Rotated catalog generation for pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_client_catalog_cache():
    invalidate_cache_pattern(CLIENT_CATALOG_PREFIX)


@receiver([post_save, post_delete])
def invalidate_catalog_on_change(sender, instance, **kwargs):
    """Drop cached client catalogs when catalog data or assignments change"""
    if sender.__name__ not in ('Product', 'Category', 'Subcategory', 'ClientProductAssignment'):
        return
    from .models import Product, Category, Subcategory, ClientProductAssignment

    if isinstance(instance, (Product, Category, Subcategory, ClientProductAssignment)):
        invalidate_client_catalog_cache()
