"""featureboard - product-management kanban board with drag-and-reorder.

Card ordering lives in ``featureboard.board``, persistence in
``featureboard.db`` and the NiceGUI page in ``featureboard.pages``.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

__version__ = "0.1.0"

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


def _setup_logging(log_dir: Path) -> None:
    """Send DEBUG and up to a per-process rotating file, INFO and up to the console."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"featureboard.{os.getpid()}.log"

    # 10MB per file, 5 backups
    to_file = RotatingFileHandler(
        log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
    to_file.setLevel(logging.DEBUG)
    to_file.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    to_console = logging.StreamHandler()
    to_console.setLevel(logging.INFO)
    to_console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(to_file)
    root.addHandler(to_console)
    logging.info("Writing logs to %s", log_file.absolute())


def main() -> None:
    """Start the board server."""
    from nicegui import app, ui

    from featureboard.config import get_settings

    settings = get_settings()
    _setup_logging(settings.app.log_dir)

    import featureboard.pages  # noqa: F401 - registers routes

    if settings.database.url and not settings.dev.memory_store:
        from featureboard.db import close_db, get_engine, init_db, verify_schema
        from featureboard.db.bootstrap import run_alembic_upgrade

        run_alembic_upgrade()

        @app.on_startup
        async def connect_feature_store() -> None:
            await init_db()
            await verify_schema(get_engine())
            logging.getLogger(__name__).info("Feature store connected")

        @app.on_shutdown
        async def disconnect_feature_store() -> None:
            await close_db()
    else:
        logging.getLogger(__name__).info("Serving the in-memory demo board")

    print(f"featureboard v{__version__} on http://0.0.0.0:{settings.app.port}")
    ui.run(
        host="0.0.0.0",  # nosec B104
        port=settings.app.port,
        title="featureboard",
        reload=os.environ.get("FEATUREBOARD_RELOAD", "1") != "0",
        storage_secret=settings.app.storage_secret.get_secret_value(),
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
