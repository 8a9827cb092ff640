# =============================================================================
# Rendering limits
# =============================================================================

MAX_PIXEL_DIMENSION = 8000  # Longest allowed side of the output image (px)
MAX_TOTAL_PIXELS = 32_000_000  # ~32MP to stay within memory limits
MIN_SCALE_FACTOR = 1.0

WIDE_PAGE_THRESHOLD_POINTS = 1600  # Pages at least this wide use the low scale
WIDE_PAGE_SCALE_FACTOR = 2.0
DEFAULT_SCALE_FACTOR = 2.95
# MuPDF corrupts tiling patterns when rendering at exactly 3x
FORBIDDEN_SCALE_FACTOR = 3.0

RETRY_SCALE_MULTIPLIER = 0.5  # Degraded scale after a failed render
HIGH_MEMORY_WARNING_MB = 200
BYTES_PER_PIXEL = 3  # RGB, no alpha


# =============================================================================
# Encoding
# =============================================================================

JPEG_QUALITY = 80


# =============================================================================
# Remote I/O
# =============================================================================

PDF_SIGNATURE = b"%PDF"
FETCH_MAX_ATTEMPTS = 3
UPLOAD_MAX_ATTEMPTS = 3
INITIAL_BACKOFF_SECONDS = 1.0
BACKOFF_MULTIPLIER = 2.0  # 1s, 2s, 4s
FETCH_TIMEOUT_SECONDS = 60.0
FETCH_USER_AGENT = "PageRender-PDFProcessor/1.0"
AUTH_RETRY_STATUSES = frozenset({401, 403})

CONFIG_SERVICE_TIMEOUT_SECONDS = 5.0
ALERT_TIMEOUT_SECONDS = 10.0


# =============================================================================
# Storage
# =============================================================================

STORAGE_TYPE_S3 = "S3_PATH"
STORAGE_TYPE_VERCEL_BLOB = "VERCEL_BLOB"
DOC_ID_PATTERN = r"(doc_[^/]+)/"


# =============================================================================
# Error Handling
# =============================================================================

ERROR_BODY_MAX_CHARS = 100  # Maximum chars from error response bodies
PREVIEW_MAX_CHARS = 200
