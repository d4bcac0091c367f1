"""Tests for MongoDB adapter operations."""

from datetime import UTC, datetime

import pytest
from mongomock_motor import AsyncMongoMockClient
from pydantic import Field

from otp_service.db.mongodb.adapter import MongoDBAdapter
from otp_service.db.mongodb.models import BaseOTPDocument
from otp_service.exceptions import PersistenceError
from otp_service.types import OTPStatus
from tests.conftest import TEST_MSISDN, TEST_PIN


# Test OTP model
class OTP(BaseOTPDocument):
    """Test OTP document."""

    note: str | None = Field(default=None, max_length=50)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
async def mongo_db() -> AsyncMongoMockClient:
    """Create mock MongoDB database."""
    client = AsyncMongoMockClient()
    return client["test_db"]


@pytest.fixture
async def mongo_adapter(mongo_db: AsyncMongoMockClient) -> MongoDBAdapter[OTP]:
    """Create MongoDB adapter instance."""
    return MongoDBAdapter(
        database=mongo_db,
        otp_collection_name="otp",
        otp_model_class=OTP,
    )


@pytest.fixture
async def active_otp(mongo_adapter: MongoDBAdapter[OTP]) -> OTP:
    """Create an active OTP document."""
    return await mongo_adapter.create(
        customer_id=42,
        msisdn=TEST_MSISDN,
        pin=TEST_PIN,
        created_on=datetime.now(UTC),
    )


# ============================================================================
# Creation Tests
# ============================================================================


class TestCreate:
    """Test suite for OTP document creation."""

    @pytest.mark.asyncio
    async def test_create_assigns_object_id(self, active_otp: OTP) -> None:
        """Should assign a string ObjectId on insert."""
        assert isinstance(active_otp.id, str)
        assert len(active_otp.id) == 24
        assert active_otp.status == OTPStatus.ACTIVE
        assert active_otp.attempt_count == 0
        assert active_otp.application_id == 1

    @pytest.mark.asyncio
    async def test_status_stored_as_string(
        self, mongo_adapter: MongoDBAdapter[OTP], active_otp: OTP
    ) -> None:
        """Status should be stored as its plain string value."""
        doc = await mongo_adapter.otp_collection.find_one({})
        assert doc["status"] == "ACTIVE"
        assert "_id" in doc

    @pytest.mark.asyncio
    async def test_created_on_is_timezone_aware(
        self, mongo_adapter: MongoDBAdapter[OTP], active_otp: OTP
    ) -> None:
        """Timestamps should be returned UTC-aware."""
        otp = await mongo_adapter.find_by_id(active_otp.id)
        assert otp is not None
        assert otp.created_on.tzinfo is not None


# ============================================================================
# Lookup Tests
# ============================================================================


class TestLookup:
    """Test suite for OTP document lookups."""

    @pytest.mark.asyncio
    async def test_find_by_id(
        self, mongo_adapter: MongoDBAdapter[OTP], active_otp: OTP
    ) -> None:
        """Should find a document by string id."""
        otp = await mongo_adapter.find_by_id(active_otp.id)
        assert otp is not None
        assert otp.id == active_otp.id
        assert otp.pin == TEST_PIN

    @pytest.mark.asyncio
    async def test_malformed_document_raises_persistence_error(
        self, mongo_adapter: MongoDBAdapter[OTP]
    ) -> None:
        """A stored document that fails validation should be a store failure."""
        result = await mongo_adapter.otp_collection.insert_one(
            {"customer_id": 42, "msisdn": TEST_MSISDN, "pin": 12, "status": "ACTIVE"}
        )

        with pytest.raises(PersistenceError) as exc_info:
            await mongo_adapter.find_by_id(str(result.inserted_id))

        assert exc_info.value.service == "mongodb"

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self, mongo_adapter: MongoDBAdapter[OTP]) -> None:
        """Should return None for unknown or malformed ids."""
        assert await mongo_adapter.find_by_id("507f1f77bcf86cd799439011") is None
        assert await mongo_adapter.find_by_id("not-an-object-id") is None

    @pytest.mark.asyncio
    async def test_find_by_id_and_status(
        self, mongo_adapter: MongoDBAdapter[OTP], active_otp: OTP
    ) -> None:
        """Should only match on the right status."""
        assert (
            await mongo_adapter.find_by_id_and_status(active_otp.id, OTPStatus.ACTIVE)
            is not None
        )
        assert (
            await mongo_adapter.find_by_id_and_status(active_otp.id, OTPStatus.EXPIRED)
            is None
        )

    @pytest.mark.asyncio
    async def test_find_by_id_and_pin_and_status(
        self, mongo_adapter: MongoDBAdapter[OTP], active_otp: OTP
    ) -> None:
        """Should only match when the pin matches too."""
        assert (
            await mongo_adapter.find_by_id_and_pin_and_status(
                active_otp.id, TEST_PIN, OTPStatus.ACTIVE
            )
            is not None
        )
        assert (
            await mongo_adapter.find_by_id_and_pin_and_status(
                active_otp.id, 111111, OTPStatus.ACTIVE
            )
            is None
        )

    @pytest.mark.asyncio
    async def test_find_all_filters_by_customer(
        self, mongo_adapter: MongoDBAdapter[OTP], active_otp: OTP
    ) -> None:
        """Should filter by customer only when one is given."""
        other = await mongo_adapter.create(
            customer_id=7,
            msisdn=TEST_MSISDN,
            pin=TEST_PIN,
            created_on=datetime.now(UTC),
        )

        assert [o.id for o in await mongo_adapter.find_all()] == [active_otp.id, other.id]
        assert [o.id for o in await mongo_adapter.find_all(7)] == [other.id]


# ============================================================================
# Update Tests
# ============================================================================


class TestUpdate:
    """Test suite for OTP document updates."""

    @pytest.mark.asyncio
    async def test_save_replaces_document(
        self, mongo_adapter: MongoDBAdapter[OTP], active_otp: OTP
    ) -> None:
        """Should update the existing document by id."""
        active_otp.note = "resent"
        await mongo_adapter.save(active_otp)

        otp = await mongo_adapter.find_by_id(active_otp.id)
        assert otp is not None
        assert otp.note == "resent"
        assert len(await mongo_adapter.find_all()) == 1

    @pytest.mark.asyncio
    async def test_save_inserts_new_document(
        self, mongo_adapter: MongoDBAdapter[OTP]
    ) -> None:
        """Saving a document without id should insert it."""
        otp = OTP(
            customer_id=42,
            msisdn=TEST_MSISDN,
            pin=TEST_PIN,
            created_on=datetime.now(UTC),
        )
        saved = await mongo_adapter.save(otp)

        assert saved.id is not None
        assert await mongo_adapter.find_by_id(saved.id) is not None

    @pytest.mark.asyncio
    async def test_transition_updates_status_and_attempts(
        self, mongo_adapter: MongoDBAdapter[OTP], active_otp: OTP
    ) -> None:
        """Should set the new status and count one attempt."""
        updated = await mongo_adapter.transition(
            active_otp, OTPStatus.VERIFIED, OTPStatus.ACTIVE
        )

        assert updated is True
        assert active_otp.status == OTPStatus.VERIFIED
        assert active_otp.attempt_count == 1

        otp = await mongo_adapter.find_by_id(active_otp.id)
        assert otp is not None
        assert otp.status == OTPStatus.VERIFIED
        assert otp.attempt_count == 1

    @pytest.mark.asyncio
    async def test_transition_requires_expected_status(
        self, mongo_adapter: MongoDBAdapter[OTP], active_otp: OTP
    ) -> None:
        """A second transition from ACTIVE should not apply."""
        assert await mongo_adapter.transition(
            active_otp, OTPStatus.EXPIRED, OTPStatus.ACTIVE
        )

        updated = await mongo_adapter.transition(
            active_otp, OTPStatus.VERIFIED, OTPStatus.ACTIVE
        )

        assert updated is False
        otp = await mongo_adapter.find_by_id(active_otp.id)
        assert otp is not None
        assert otp.status == OTPStatus.EXPIRED
        assert otp.attempt_count == 1
