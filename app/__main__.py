"""Run the gateway with uvicorn: ``python -m app``."""

import uvicorn
from dotenv import load_dotenv

from app.core.settings import get_settings


def main() -> None:
    load_dotenv()
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
