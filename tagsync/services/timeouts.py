from __future__ import annotations

# GH / API operations
GH_TIMEOUT_SECONDS = 60.0
GH_UPLOAD_TIMEOUT_SECONDS = 15 * 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

# cargo release builds of the whole workspace are slow, cross builds slower
CARGO_BUILD_TIMEOUT_SECONDS = 2 * 60 * 60.0
