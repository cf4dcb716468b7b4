"""Data access layer.

`AppServices` bundles the database manager and every store built on top of
it. One bundle is created per Flask app by `create_app` and looked up from
request handlers with `get_services()`.
"""

from flask import current_app

from storage.catalog_store import CatalogStore
from storage.contact_store import ContactStore
from storage.enrollment_store import EnrollmentStore
from storage.site_content_store import SiteContentStore
from storage.stats_store import StatsStore
from storage.user_store import UserStore

EXTENSION_KEY = 'learnhub'


class AppServices:
    def __init__(self, db, token_service, rate_limiter):
        self.db = db
        self.token_service = token_service
        self.rate_limiter = rate_limiter
        self.users = UserStore(db)
        self.catalog = CatalogStore(db)
        self.enrollments = EnrollmentStore(db)
        self.site_content = SiteContentStore(db)
        self.stats = StatsStore(db)
        self.contacts = ContactStore(db)

    def close(self):
        self.db.close_all_connections()


def get_services(app=None):
    app = app or current_app
    return app.extensions[EXTENSION_KEY]
