import logging
import sys

from .app import create_app
from .config import Config, ConfigError

log = logging.getLogger("upload_panel")


def main():
    try:
        config = Config.from_env()
        app = create_app(config)
    except ConfigError as error:
        logging.basicConfig(level=logging.ERROR)
        log.error("Startup failed: %s", error)
        sys.exit(1)

    app.logger.info("Server listening on http://%s:%d", config.host, config.port)
    app.logger.info("Upload directory: %s", config.upload_dir)
    app.run(host=config.host, port=config.port, threaded=True)


if __name__ == "__main__":
    main()
