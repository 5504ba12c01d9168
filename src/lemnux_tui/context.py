from __future__ import annotations

import logging
import threading
from dataclasses import asdict
from typing import Any, Dict, Optional

from .api import LemmyClient
from .config import (
    CONFIG_DIR,
    DEFAULT_DISCOVERY_DOMAIN,
    INSTANCE_RECORD,
    PREFERENCES_RECORD,
    USER_RECORD,
    load_record,
    remove_record,
    save_record,
)
from .datamodels import Instance, ListingScope, ListingType, SortType, User
from .errors import ConfigurationError
from .images import ImageLoader

logger = logging.getLogger("lemnux")


class AppContext:
    """Selected instance, session and preferences, built once at startup.

    Everything that talks to the server asks the context for a client.
    Session and instance changes swap the client under a lock, which keeps
    them serialized with respect to each other and leaves requests already
    in flight on the client they started with.
    """

    def __init__(self, config: Dict[str, Any], config_dir: str = CONFIG_DIR):
        self.config = config
        self.config_dir = config_dir
        self._lock = threading.Lock()
        self._client: Optional[LemmyClient] = None
        self.image_loader = ImageLoader()

        self.instance = self._load(INSTANCE_RECORD, Instance.from_dict)
        self.user = self._load(USER_RECORD, User.from_dict)
        self.preferences: Dict[str, Any] = load_record(PREFERENCES_RECORD, config_dir) or {}

    def _load(self, name: str, factory):
        data = load_record(name, self.config_dir)
        if data is None:
            return None
        try:
            return factory(data)
        except (KeyError, TypeError) as e:
            logger.warning("Ignoring malformed %s record: %s", name, e)
            return None

    @property
    def secure(self) -> bool:
        return self.config.get("secure", True)

    @property
    def theme(self) -> Optional[str]:
        return self.preferences.get("theme")

    @property
    def token(self) -> Optional[str]:
        if self.user and self.user.is_logged:
            return self.user.token
        return None

    def default_scope(self) -> ListingScope:
        try:
            listing_type = ListingType(self.config.get("listing_type", ListingType.LOCAL.value))
            sort = SortType(self.config.get("sort", SortType.HOT.value))
        except ValueError as e:
            logger.warning("Invalid listing in config, using Local/Hot: %s", e)
            return ListingScope()
        return ListingScope(listing_type=listing_type, sort=sort)

    def client(self) -> LemmyClient:
        """The client for the selected instance and current session."""
        with self._lock:
            if self.instance is None:
                raise ConfigurationError("No instance selected")
            if self._client is None:
                self._client = LemmyClient(self.instance.domain, self.token, self.secure)
            return self._client

    def discovery_client(self) -> LemmyClient:
        domain = self.config.get("discovery_domain", DEFAULT_DISCOVERY_DOMAIN)
        return LemmyClient(domain, secure=self.secure)

    def select_instance(self, instance: Instance) -> None:
        with self._lock:
            self.instance = instance
            self._client = None
        save_record(INSTANCE_RECORD, asdict(instance), self.config_dir)
        logger.info("Selected instance %s", instance.domain)

    def set_theme(self, theme: str) -> None:
        self.preferences["theme"] = theme
        save_record(PREFERENCES_RECORD, self.preferences, self.config_dir)

    def login(
        self, username: str, password: str, totp_2fa_token: Optional[str] = None
    ) -> Optional[User]:
        """Log in on the selected instance. Returns None without a request if a field is empty.

        Raises AuthError when the server rejects the credentials.
        """
        if not username or not password:
            logger.info("Login skipped: username and password are required")
            return None

        result = self.client().login(username, password, totp_2fa_token or None)
        user = User(
            username=username,
            token=result.token,
            is_logged=result.token is not None,
            registration_created=result.registration_created,
            verify_email_sent=result.verify_email_sent,
        )
        with self._lock:
            self.user = user
            self._client = None
        save_record(USER_RECORD, asdict(user), self.config_dir)
        return user

    def logout(self) -> None:
        with self._lock:
            self.user = None
            self._client = None
        remove_record(USER_RECORD, self.config_dir)
        logger.info("Logged out")
