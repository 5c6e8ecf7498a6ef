# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Portal entrypoint.

Run with:
  SECRET_KEY=... python -m portal
"""

import os
import uvicorn

from portal.core.settings import load_settings


def main() -> None:
    # Fail here, before binding the port, when SECRET_KEY or a policy value is wrong.
    load_settings()
    uvicorn.run(
        "portal.app:create_app",
        factory=True,
        host=os.getenv("PORTAL_HOST", "0.0.0.0"),
        port=int(os.getenv("PORTAL_PORT", "8000")),
        reload=os.getenv("PORTAL_RELOAD", "false").lower() in {"1", "true", "yes", "y"},
    )


if __name__ == "__main__":
    main()
