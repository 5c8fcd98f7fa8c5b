"""
Device service handling terminal health reports and roster sync.
"""
from typing import Optional, Tuple
from uuid import UUID

from app.core.clock import utcnow
from app.core.config import Settings
from app.models.election import DeviceStatus
from app.models.log import ActivityLogType
from app.schemas.election import (
    DeviceCreate,
    DeviceResponse,
    DeviceHealthReport,
    DeviceSyncSnapshot,
    SyncVoterEntry,
)
from app.services.audit_service import AuditService
from app.services.vote_service import DEVICE_NOT_FOUND
from app.storage.base import Storage


def status_for_battery(battery_level: Optional[int], low_threshold: int) -> DeviceStatus:
    """
    Map one battery reading straight to a status.
    There is no smoothing: a single low reading flips the device.
    """
    if battery_level is None:
        return DeviceStatus.ONLINE
    if battery_level == 0:
        return DeviceStatus.OFFLINE
    if battery_level < low_threshold:
        return DeviceStatus.WARNING
    return DeviceStatus.ONLINE


class DeviceService:
    """Service for device lifecycle operations."""

    def __init__(self, storage: Storage, settings: Settings):
        self.storage = storage
        self.settings = settings
        self.audit = AuditService(storage)

    async def register_device(self, data: DeviceCreate) -> DeviceResponse:
        return await self.storage.create_device(data)

    async def report_health(
        self,
        device_id: str,
        report: DeviceHealthReport
    ) -> Optional[DeviceResponse]:
        """Apply a self-reported health reading. Returns None for unknown devices."""
        status = status_for_battery(report.battery_level, self.settings.LOW_BATTERY_THRESHOLD)

        device = await self.storage.update_device_status(
            device_id,
            status,
            battery_level=report.battery_level,
            firmware_version=report.firmware_version,
        )
        if device is None:
            return None

        device = await self.storage.touch_device_sync(device_id)

        await self.audit.activity(
            ActivityLogType.DEVICE_SYNC,
            f"Device {device_id} reported status {status.value}",
            device_id=device_id,
            details={
                "deviceId": device_id,
                "batteryLevel": report.battery_level,
                "firmwareVersion": report.firmware_version,
                "signalStrength": report.signal_strength,
                "status": status.value,
            },
        )
        return device

    async def manual_sync(
        self,
        device_id: str,
        user_id: Optional[UUID] = None
    ) -> Optional[DeviceResponse]:
        """Operator-triggered sync. Returns None for unknown devices."""
        device = await self.storage.touch_device_sync(device_id)
        if device is None:
            return None

        await self.audit.activity(
            ActivityLogType.DEVICE_SYNC,
            f"Device {device_id} manually synchronized",
            user_id=user_id,
            device_id=device_id,
            details={"deviceId": device_id},
        )
        return device

    async def sync_snapshot(
        self,
        device_id: str
    ) -> Tuple[Optional[DeviceSyncSnapshot], Optional[str]]:
        """
        Build the roster and ballot a device caches for offline use.

        Returns:
            Tuple of (snapshot, error)
        """
        device = await self.storage.touch_device_sync(device_id)
        if device is None:
            return None, DEVICE_NOT_FOUND

        voters = await self.storage.list_voters()
        candidates = await self.storage.list_candidates()

        snapshot = DeviceSyncSnapshot(
            voters=[
                SyncVoterEntry(
                    id=v.voter_id,
                    fingerprint_hash=v.fingerprint_hash,
                    has_voted=v.has_voted,
                )
                for v in voters
            ],
            candidates=[c.name for c in candidates if c.active],
            synced_at=device.last_sync or utcnow(),
        )
        return snapshot, None
