import os

from rubber.logger import get_logger

logger = get_logger()


def main() -> None:
    host = os.getenv("RUBBER_HOST", "127.0.0.1")
    port = int(os.getenv("RUBBER_PORT", "8000"))
    display_url = f"http://localhost:{port}"

    logger.info(
        "Starting Rubber PR reviewer API on {display_url} (binding to {host}:{port})",
        display_url=display_url,
        host=host,
        port=port,
    )

    import uvicorn

    uvicorn.run(
        app="rubber.main:app",
        host=host,
        port=port,
        workers=1,
        log_level="info",
    )


if __name__ == "__main__":
    main()
