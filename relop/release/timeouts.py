from __future__ import annotations

# GH / API reads (labels, tags, release lookups)
GH_TIMEOUT_SECONDS = 60.0

# Release creation including asset upload
GH_UPLOAD_TIMEOUT_SECONDS = 15 * 60.0

# Idempotent GH read retry policy. Writes are never retried.
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

# Artifact barrier
COLLECT_TIMEOUT_SECONDS = 10 * 60.0
COLLECT_POLL_INTERVAL_SECONDS = 5.0
