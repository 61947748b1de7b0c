import pytest
from pydantic import ValidationError

from ekerja.models.enums import AttendanceStatus, OrderStatus, VerificationStatus
from ekerja.schemas import (
    AccessRespond,
    AccessToggle,
    AttendanceUpdate,
    MessageCreate,
    OrderCreate,
    OrderStatusUpdate,
    ReportResolve,
    ReviewCreate,
    VerificationSubmit,
)


def test_order_create_parses_iso_date():
    body = OrderCreate(
        provider_service_id=1, scheduled_date="2030-01-02T09:00:00Z",
        job_address="a", district="b", sub_district="c", ward="d",
    )
    assert body.scheduled_date.tzinfo is not None
    assert body.chosen_payment_method is None


def test_status_update_rejects_unknown_status():
    assert OrderStatusUpdate(status="ACCEPTED").status == OrderStatus.ACCEPTED
    with pytest.raises(ValidationError):
        OrderStatusUpdate(status="SHIPPED")


def test_attendance_and_verification_enums():
    assert AttendanceUpdate(status="ON_THE_WAY").status == AttendanceStatus.ON_THE_WAY
    assert VerificationSubmit(status="rejected").status == VerificationStatus.REJECTED
    with pytest.raises(ValidationError):
        VerificationSubmit(status="maybe")


def test_review_rating_passes_fractions_through_for_service_validation():
    assert ReviewCreate(order_id=1, rating=4.5).rating == 4.5
    assert ReviewCreate(order_id=1, rating=5).rating == 5


def test_message_length_bounds():
    with pytest.raises(ValidationError):
        MessageCreate(content="")
    with pytest.raises(ValidationError):
        MessageCreate(content="x" * 1001)


def test_action_literals():
    assert ReportResolve(action="dismiss").action == "dismiss"
    with pytest.raises(ValidationError):
        ReportResolve(action="delete")
    with pytest.raises(ValidationError):
        AccessRespond(action="maybe")


def test_access_toggle_defaults():
    body = AccessToggle(grant_access=False)
    assert body.admin_id is None and body.access_hours is None
