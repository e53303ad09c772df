"""Filter a Discogs artist's discography by media format and price."""

__version__ = "0.1.0"
