"""Release decision and publication.

Stages, in run order:
- signal: was a release requested for the pushed commit?
- versioning: which tag does the release get?
- collector: wait for and validate the per-platform binaries
- stamper: sha256 checksum files for every binary
- publisher: create the tagged release with everything attached
"""

from __future__ import annotations
