import uvicorn

from aws_ip_lookup.config import settings


def main() -> None:
    uvicorn.run(
        "aws_ip_lookup.main:app",
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
