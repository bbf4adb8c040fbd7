"""Media download and description."""

from chronicler.media.describer import MediaDescriber, MediaKind, classify_media
from chronicler.media.fetch import FetchedMedia, MediaFetcher

__all__ = ["FetchedMedia", "MediaDescriber", "MediaFetcher", "MediaKind", "classify_media"]
