"""Context keys shared by the resize pipeline steps."""

REQUEST = "request"
CACHE_KEY = "cache_key"
CACHE_HIT = "cache_hit"
SOURCE_BYTES = "source_bytes"
IMAGE_BYTES = "image_bytes"
CONTENT_TYPE = "content_type"
PUBLIC_URL = "public_url"
