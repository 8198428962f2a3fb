"""Provider link resolution.

Provider rows pass through whatever link fields the clinic configured, and
the same link shows up under several spellings ("Form Link", "FormLink",
...). These helpers pick the first one present, in a fixed precedence.
"""

from loguru import logger

from ..schemas.clients import Provider

DEFAULT_FORM_URL = "https://app.ponce.ai/face/default-clinic"
DEFAULT_SCAN_URL = "https://app.ponce.ai/face/default-email"
DEFAULT_TELEHEALTH_URL = "https://your-telehealth-link.com"

_FORM_LINK_KEYS = ("Form Link", "FormLink", "Form link", "form link")
_FORM_FALLBACK_KEYS = ("JotformURL", "SCAN_FORM_URL")
_WEB_LINK_KEYS = ("Web Link", "WebLink", "web link", "webLink")


def _lookup(provider: Provider, keys) -> str | None:
    for key in keys:
        value = provider.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def get_form_url(provider: Provider | None) -> str:
    """Intake / scan form link for the clinic."""
    if provider is None:
        return DEFAULT_FORM_URL
    return (
        _lookup(provider, _FORM_LINK_KEYS)
        or _lookup(provider, _FORM_FALLBACK_KEYS)
        or DEFAULT_FORM_URL
    )


def get_telehealth_link(provider: Provider | None) -> str:
    if provider is None:
        return DEFAULT_TELEHEALTH_URL
    return _lookup(provider, _WEB_LINK_KEYS[:2]) or DEFAULT_TELEHEALTH_URL


def get_telehealth_scan_link(provider: Provider | None) -> str:
    """Web link, then form link, then the default scan page."""
    if provider is None:
        logger.warning("Provider info not loaded yet, using default scan URL")
        return DEFAULT_SCAN_URL
    link = _lookup(provider, _WEB_LINK_KEYS) or _lookup(
        provider, ("Form Link", "FormLink", "Form link", "formLink")
    )
    if not link:
        logger.warning("No Web Link or Form Link for provider {}, using default", provider.id)
        return DEFAULT_SCAN_URL
    return link


def get_provider_logo_url(provider: Provider | None) -> str | None:
    """String logo, or the first attachment's large thumbnail / full URL."""
    if provider is None:
        return None
    logo = provider.logo or provider.get("Logo")
    if isinstance(logo, str):
        return logo or None
    if isinstance(logo, list) and logo:
        head = logo[0] or {}
        thumbs = head.get("thumbnails") or {}
        large = (thumbs.get("large") or {}).get("url")
        return large or head.get("url") or None
    return None
