"""
Voter, Candidate, Device and Vote database models.
"""
import uuid
import enum

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Float, ForeignKey, Enum
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from app.core.database import Base, GUID


class DeviceStatus(str, enum.Enum):
    """Device status enumeration."""
    ONLINE = "online"
    OFFLINE = "offline"
    WARNING = "warning"


class Voter(Base):
    """Registered voter with the fingerprint hash enrolled at registration."""

    __tablename__ = "voters"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    voter_id = Column(String(64), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=False)
    fingerprint_hash = Column(String(255), nullable=False)
    has_voted = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Voter(id={self.id}, voter_id='{self.voter_id}', has_voted={self.has_voted})>"


class Candidate(Base):
    """Candidate model representing a voting option."""

    __tablename__ = "candidates"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    party = Column(String(200), nullable=False)

    # Ordering
    position = Column(Integer, nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    votes = relationship("Vote", back_populates="candidate")

    def __repr__(self) -> str:
        return f"<Candidate(id={self.id}, name='{self.name}', position={self.position})>"


class Device(Base):
    """Biometric voting terminal."""

    __tablename__ = "devices"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    device_id = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    status = Column(Enum(DeviceStatus), default=DeviceStatus.OFFLINE, nullable=False)
    battery_level = Column(Integer, nullable=True)
    last_sync = Column(DateTime, nullable=True)
    location = Column(String(200), nullable=True)
    firmware_version = Column(String(50), nullable=True)

    votes = relationship("Vote", back_populates="device")

    def __repr__(self) -> str:
        return f"<Device(device_id='{self.device_id}', status={self.status})>"


class Vote(Base):
    """
    A vote accepted from a device.

    voter_id is the external voter identifier, not a foreign key. It is
    unique so the store itself rejects a second vote for the same voter.
    """

    __tablename__ = "votes"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    voter_id = Column(String(64), unique=True, nullable=False, index=True)
    candidate_id = Column(
        GUID(),
        ForeignKey("candidates.id", ondelete="SET NULL"),
        nullable=True
    )
    device_id = Column(
        GUID(),
        ForeignKey("devices.id", ondelete="SET NULL"),
        nullable=True
    )
    fingerprint_hash = Column(String(255), nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
    verified = Column(Boolean, default=True, nullable=False)

    # Sensor telemetry
    confidence = Column(Float, nullable=True)
    signal_strength = Column(Integer, nullable=True)

    candidate = relationship("Candidate", back_populates="votes")
    device = relationship("Device", back_populates="votes")

    def __repr__(self) -> str:
        return f"<Vote(id={self.id}, candidate_id={self.candidate_id})>"
