import logging

from haver.infra.db import engine
from haver.infra.models import Base

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    logger.info("Tabelas criadas em %s", engine.url.render_as_string(hide_password=True))

if __name__ == "__main__":
    main()
