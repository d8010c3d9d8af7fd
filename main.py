"""Launch the river risk FastAPI server."""

import uvicorn

from river_risk.config import settings


def main():
    uvicorn.run("river_risk.server:app", host=settings.api_host, port=settings.api_port, reload=True)


if __name__ == "__main__":
    main()
