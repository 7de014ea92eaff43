"""Site publishing helpers"""

from .redirects import canonical_slug, build_redirects, format_redirects, write_redirects

__all__ = [
    'canonical_slug',
    'build_redirects',
    'format_redirects',
    'write_redirects'
]
