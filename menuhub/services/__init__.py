"""
                        Services Module

Business logic behind the HTTP routes. Route handlers stay thin and
delegate persistence work here.

Services:
    - i18n: Localization resolver (ku / en / ar)
    - routing: Slug-to-welcome-route rewriter and slug helpers
    - auth: Admin PIN hashing, signed session cookie, login rate limit
    - cache: Tagged in-process cache for the public menu
    - menu: Menu tree reads and section/category/item CRUD
    - reorder: Sibling reordering (independent and atomic)
    - restaurant: Profile lookups, branding, settings, slugs
    - display: Theme and UI settings singletons
    - media: Binary uploads and serving
"""

from menuhub.services.errors import MediaRejectedError, MissingRecordsError, NotFoundError

__all__ = ["MediaRejectedError", "MissingRecordsError", "NotFoundError"]
