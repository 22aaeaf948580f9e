import uvicorn

from jwks_server.config import settings


def main() -> None:
    uvicorn.run("jwks_server.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
