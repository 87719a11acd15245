"""tablekv entrypoint.

Run with:
  python -m tablekv
"""

import uvicorn

from tablekv.settings import load_settings


def main() -> None:
    settings = load_settings()
    uvicorn.run("tablekv.app:app", host=settings.host, port=settings.port, reload=settings.reload)

if __name__ == "__main__":
    main()
