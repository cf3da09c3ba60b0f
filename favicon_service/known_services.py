"""
Markstash v1 - Known Service Icons

Direct icon URLs for a handful of very common sites. These are tried before
any request is made to the site itself.
"""

from types import MappingProxyType
from typing import Optional

from .normalizer import bare_domain

KNOWN_SERVICES = MappingProxyType({
    "gmail.com": "https://ssl.gstatic.com/ui/v1/icons/mail/rfr/gmail.ico",
    "mail.google.com": "https://ssl.gstatic.com/ui/v1/icons/mail/rfr/gmail.ico",
    "google.com": "https://www.google.com/favicon.ico",
    "youtube.com": "https://www.youtube.com/favicon.ico",
    "github.com": "https://github.com/favicon.ico",
    "stackoverflow.com": "https://cdn.sstatic.net/Sites/stackoverflow/Img/favicon.ico",
    "twitter.com": "https://abs.twimg.com/favicons/twitter.ico",
    "facebook.com": "https://static.xx.fbcdn.net/rsrc.php/yV/r/hzMapiNYYpW.ico",
    "linkedin.com": "https://static.licdn.com/sc/h/1bt1uwq5akv756knzdj4l6cdc",
})


def known_service_icon(url: str) -> Optional[str]:
    """Return the hardcoded icon URL for the URL's domain, if there is one."""
    return KNOWN_SERVICES.get(bare_domain(url))
