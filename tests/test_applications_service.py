from uuid import uuid4

import pytest
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import Forbidden, InvalidTransition, NotFound, ValidationFailed
from app.models.loan_application import LoanApplication
from app.models.user import User
from app.schemas.applications import LoanApplicationCreate
from app.schemas.common import ApplicationStatus, Role
from app.services import applications as workflow

from tests.conftest import (
    FakeAsyncSession,
    FakeResult,
    entity_handler,
    identity_for,
    make_application,
    make_user,
)


def _session_with(application: LoanApplication | None) -> FakeAsyncSession:
    db = FakeAsyncSession()
    db.on_execute(entity_handler(LoanApplication, FakeResult(scalar=application)))
    return db


ALL_TRANSITIONS = [
    (workflow.verify_application, Role.VERIFIER),
    (workflow.reject_application, Role.VERIFIER),
    (workflow.approve_application, Role.ADMIN),
    (workflow.admin_reject_application, Role.ADMIN),
]
NON_PENDING = [ApplicationStatus.VERIFIED, ApplicationStatus.REJECTED, ApplicationStatus.APPROVED]


@pytest.mark.asyncio
async def test_submit_creates_pending_application():
    db = FakeAsyncSession()
    payload = LoanApplicationCreate.model_validate(
        dict(
            name="  Asha <script>x</script>Rao ",
            email="Asha@Example.COM",
            phone="9876543210",
            amount=50000,
            purpose="Home repair",
            tenure=12,
            monthlyIncome=30000,
            employmentType="Salaried",
            panCard="ABCDE1234F",
        )
    )

    result = await workflow.submit_application(db, payload, origin="10.0.0.5")

    assert db.committed
    [stored] = db.added
    assert stored.status == "pending"
    assert stored.email == "asha@example.com"
    assert stored.name == "Asha Rao"
    assert stored.submitted_by == "10.0.0.5"
    assert stored.verified_by is None and stored.admin_action_by is None
    assert result.id == stored.id
    assert result.status is ApplicationStatus.PENDING


@pytest.mark.asyncio
async def test_submit_without_origin_records_unknown():
    db = FakeAsyncSession()
    payload = LoanApplicationCreate.model_validate(
        dict(
            name="Asha Rao",
            email="asha@example.com",
            phone="9876543210",
            amount=50000,
            purpose="Home repair",
            tenure=12,
            monthlyIncome=30000,
            employmentType="Salaried",
        )
    )
    await workflow.submit_application(db, payload, origin=None)
    assert db.added[0].submitted_by == "unknown"


@pytest.mark.asyncio
async def test_submit_rejects_invalid_payload_without_writing():
    db = FakeAsyncSession()
    with pytest.raises(ValidationFailed) as excinfo:
        await workflow.submit_application(db, LoanApplicationCreate(name="A"), origin="x")
    assert "Applicant name must be at least 2 characters long" in excinfo.value.errors
    assert db.added == []
    assert not db.committed


@pytest.mark.asyncio
async def test_verify_stamps_verifier():
    verifier = make_user(role=Role.VERIFIER)
    application = make_application()
    db = _session_with(application).on_get(User, verifier.id, verifier)

    result = await workflow.verify_application(db, str(application.id), identity_for(verifier))

    assert db.committed
    assert application.status == "verified"
    assert application.verified_by == verifier.id
    assert application.verified_at is not None
    assert application.admin_action_by is None
    assert result.status is ApplicationStatus.VERIFIED
    assert result.verified_by.email == verifier.email


@pytest.mark.asyncio
async def test_verifier_reject_uses_default_reason():
    verifier = make_user(role=Role.VERIFIER)
    application = make_application()
    db = _session_with(application)

    result = await workflow.reject_application(db, application.id, identity_for(verifier))

    assert application.status == "rejected"
    assert application.rejection_reason == "Application rejected by verifier"
    assert application.verified_by == verifier.id
    assert result.rejection_reason == "Application rejected by verifier"


@pytest.mark.asyncio
async def test_verifier_reject_keeps_supplied_reason():
    verifier = make_user(role=Role.VERIFIER)
    application = make_application()
    db = _session_with(application)

    await workflow.reject_application(
        db, application.id, identity_for(verifier), "  Income proof missing "
    )

    assert application.rejection_reason == "Income proof missing"


@pytest.mark.asyncio
async def test_approve_stamps_admin():
    admin = make_user(email="admin@example.com", role=Role.ADMIN)
    application = make_application()
    db = _session_with(application).on_get(User, admin.id, admin)

    result = await workflow.approve_application(db, application.id, identity_for(admin))

    assert application.status == "approved"
    assert application.admin_action_by == admin.id
    assert application.admin_action_at is not None
    assert application.verified_by is None
    assert result.admin_action_by.id == admin.id


@pytest.mark.asyncio
async def test_admin_reject_uses_default_reason():
    admin = make_user(email="admin@example.com", role=Role.ADMIN)
    application = make_application()
    db = _session_with(application)

    await workflow.admin_reject_application(db, application.id, identity_for(admin))

    assert application.status == "rejected"
    assert application.rejection_reason == "Application rejected by admin"
    assert application.admin_action_by == admin.id


@pytest.mark.asyncio
@pytest.mark.parametrize("operation, role", ALL_TRANSITIONS)
@pytest.mark.parametrize("current", NON_PENDING)
async def test_only_pending_applications_move(operation, role, current):
    actor = make_user(role=role)
    application = make_application(status=current)
    db = _session_with(application)

    with pytest.raises(InvalidTransition):
        await operation(db, application.id, identity_for(actor))

    assert application.status == current.value
    assert application.verified_by is None
    assert application.admin_action_by is None
    assert not db.committed


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operation, wrong_role",
    [
        (workflow.verify_application, Role.ADMIN),
        (workflow.reject_application, Role.ADMIN),
        (workflow.approve_application, Role.VERIFIER),
        (workflow.admin_reject_application, Role.VERIFIER),
    ],
)
async def test_transition_refuses_wrong_role(operation, wrong_role):
    actor = make_user(role=wrong_role)
    application = make_application()
    db = _session_with(application)

    with pytest.raises(Forbidden):
        await operation(db, application.id, identity_for(actor))

    assert application.status == "pending"


@pytest.mark.asyncio
async def test_unknown_application_is_not_found():
    verifier = make_user(role=Role.VERIFIER)
    db = _session_with(None)
    with pytest.raises(NotFound):
        await workflow.verify_application(db, uuid4(), identity_for(verifier))


@pytest.mark.asyncio
async def test_malformed_id_is_not_found():
    verifier = make_user(role=Role.VERIFIER)
    db = FakeAsyncSession()
    with pytest.raises(NotFound):
        await workflow.verify_application(db, "not-a-uuid", identity_for(verifier))
    assert db.statements == []


@pytest.mark.asyncio
async def test_losing_a_concurrent_transition_is_rejected():
    verifier = make_user(role=Role.VERIFIER)
    application = make_application()
    db = _session_with(application)
    db.commit_error = StaleDataError("version mismatch")

    with pytest.raises(InvalidTransition):
        await workflow.verify_application(db, application.id, identity_for(verifier))

    assert db.rolled_back


def test_verifier_queue_is_always_pending():
    verifier = identity_for(make_user(role=Role.VERIFIER))
    assert workflow.resolve_status_filter(verifier, None) is ApplicationStatus.PENDING
    assert workflow.resolve_status_filter(verifier, "approved") is ApplicationStatus.PENDING
    assert workflow.resolve_status_filter(verifier, "all") is ApplicationStatus.PENDING


def test_admin_status_filter():
    admin = identity_for(make_user(role=Role.ADMIN))
    assert workflow.resolve_status_filter(admin, None) is ApplicationStatus.PENDING
    assert workflow.resolve_status_filter(admin, "") is ApplicationStatus.PENDING
    assert workflow.resolve_status_filter(admin, "Verified") is ApplicationStatus.VERIFIED
    assert workflow.resolve_status_filter(admin, "all") is None
    with pytest.raises(ValidationFailed):
        workflow.resolve_status_filter(admin, "archived")


@pytest.mark.asyncio
async def test_list_masks_documents_for_verifiers():
    verifier_user = make_user(role=Role.VERIFIER)
    application = make_application()
    db = FakeAsyncSession().on_execute_return(FakeResult(rows=[(application, None, None)]))

    [item] = await workflow.list_applications(db, identity_for(verifier_user), "all")

    assert item.status is ApplicationStatus.PENDING
    assert item.pan_card == "******234F"
    assert item.aadhar_card == "********1234"


@pytest.mark.asyncio
async def test_list_reveals_documents_and_actors_for_admin():
    admin = make_user(email="admin@example.com", role=Role.ADMIN)
    verifier = make_user(role=Role.VERIFIER)
    application = make_application(status=ApplicationStatus.VERIFIED, verified_by=verifier.id)
    db = FakeAsyncSession().on_execute_return(FakeResult(rows=[(application, verifier, None)]))

    [item] = await workflow.list_applications(db, identity_for(admin), "verified")

    assert item.pan_card == "ABCDE1234F"
    assert item.verified_by.name == verifier.name
    assert item.admin_action_by is None


def test_mask_identifier():
    assert workflow.mask_identifier(None) is None
    assert workflow.mask_identifier("123") == "***"
    assert workflow.mask_identifier("ABCDE1234F") == "******234F"
