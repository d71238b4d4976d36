"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups. Loading values from files or the environment is
left to the application.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, app_path="/shop", base_url="https://example.com")
    """

    debug: bool = False

    # Routing
    app_path: str = ""  # Sub-path the app is mounted under, stripped before matching
    base_url: str = ""  # Prepended by url_for(), e.g. "https://example.com"

    # Controllers referenced by string are looked up under this module once
    # the literal name fails, e.g. "myapp.controllers"
    controller_namespace: str = ""

    # Rate limiting
    rate_limit_prefix: str = "rate_limit:"
    default_rate_window: int = 60  # Seconds, used when .limit() omits a window

    # Client address — trusted proxy header, first hop wins (e.g. "x-forwarded-for")
    forwarded_ip_header: str | None = None

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB
