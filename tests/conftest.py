"""Global test fixtures."""

import os

# Keep Config deterministic regardless of the developer's shell
# This must happen at module load time, not in a fixture
os.environ.setdefault("MEDISYS_API__BASE_URL", "https://uploads.test/")
os.environ.pop("MEDISYS_CONFIG_FILE", None)
