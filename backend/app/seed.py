"""
Database seeding: default admin account and optional sample data.

Runs at application startup and standalone via ``python -m app.seed``.
"""
import asyncio
import logging

from app.core.config import Settings, get_settings
from app.core.logging_config import configure_logging
from app.core.security import hash_password, is_password_hash
from app.models.election import DeviceStatus
from app.models.user import UserRole
from app.schemas.auth import UserCreate
from app.schemas.election import CandidateCreate, DeviceCreate
from app.storage import Storage, create_storage


logger = logging.getLogger(__name__)


SAMPLE_CANDIDATES = [
    CandidateCreate(name="Candidate Alpha", party="Democratic Party", position=1),
    CandidateCreate(name="Candidate Beta", party="Republican Party", position=2),
    CandidateCreate(name="Candidate Gamma", party="Independent", position=3),
]

SAMPLE_DEVICES = [
    DeviceCreate(device_id="machine_01", name="Device-01", status=DeviceStatus.ONLINE, battery_level=87, location="Building A"),
    DeviceCreate(device_id="machine_02", name="Device-02", status=DeviceStatus.ONLINE, battery_level=92, location="Building B"),
    DeviceCreate(device_id="machine_03", name="Device-03", status=DeviceStatus.WARNING, battery_level=15, location="Building C"),
    DeviceCreate(device_id="machine_04", name="Device-04", status=DeviceStatus.OFFLINE, battery_level=0, location="Building D"),
    DeviceCreate(device_id="machine_05", name="Device-05", status=DeviceStatus.ONLINE, battery_level=76, location="Building E"),
]


async def ensure_admin_user(storage: Storage, settings: Settings) -> None:
    """Create the default super admin if it does not exist."""
    username = settings.DEFAULT_ADMIN_USERNAME.strip() or "admin"

    existing = await storage.get_user_by_username(username)
    if existing:
        if not is_password_hash(existing.password_hash):
            logger.warning(
                "Admin user %r exists but its password is not hashed; reset it manually",
                username,
            )
        logger.info("Admin user %r already exists", username)
        return

    password = settings.DEFAULT_ADMIN_PASSWORD
    if not password:
        logger.warning("DEFAULT_ADMIN_PASSWORD not set; skipping admin user creation")
        return

    await storage.create_user(UserCreate(
        username=username,
        password_hash=password if is_password_hash(password) else hash_password(password),
        role=UserRole.SUPER_ADMIN,
        full_name=settings.DEFAULT_ADMIN_FULL_NAME,
    ))
    logger.info("Admin user %r created", username)


async def seed_sample_data(storage: Storage, settings: Settings) -> None:
    """Insert sample candidates and devices into empty tables."""
    if not settings.SEED_SAMPLE_DATA:
        return

    if not await storage.list_candidates():
        for candidate in SAMPLE_CANDIDATES:
            await storage.create_candidate(candidate)
        logger.info("Seeded %d sample candidates", len(SAMPLE_CANDIDATES))

    if not await storage.list_devices():
        for device in SAMPLE_DEVICES:
            await storage.create_device(device)
        logger.info("Seeded %d sample devices", len(SAMPLE_DEVICES))


async def seed_database(storage: Storage, settings: Settings) -> None:
    await ensure_admin_user(storage, settings)
    await seed_sample_data(storage, settings)


async def main() -> None:
    settings = get_settings()
    configure_logging(settings)

    storage = create_storage(settings)
    await storage.connect()
    try:
        await seed_database(storage, settings)
        logger.info("Database seed completed")
    finally:
        await storage.close()


if __name__ == "__main__":
    asyncio.run(main())
