import uvicorn

from booking_service import settings


def main() -> None:
    uvicorn.run("booking_service.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
