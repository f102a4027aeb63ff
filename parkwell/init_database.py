"""Create the ParkWell tables, roles, permissions and the bootstrap admin."""
from parkwell.infrastructure.persistence.database import init_db
from parkwell.shared.utils import logger

if __name__ == "__main__":
    logger.info("Initializing ParkWell database...")
    init_db()
    logger.info("Database initialization complete!")
