import pytest
from sqlalchemy.exc import OperationalError

from campus_events.errors import (
    Forbidden,
    NotFound,
    StoreUnavailable,
    Unauthenticated,
    ValidationFailed,
)
from campus_events.services import event_workflow
from campus_events.services.event_repository import EventFilter, EventRepository

pytestmark = pytest.mark.anyio


async def test_student_cannot_create_events(db, make_user, event_payload):
    student = await make_user("student")
    with pytest.raises(Forbidden):
        await event_workflow.create_event(db, student, event_payload())

    events, total = await EventRepository(db).find(EventFilter())
    assert total == 0 and events == []


async def test_anonymous_create_is_unauthenticated(db, event_payload):
    with pytest.raises(Unauthenticated):
        await event_workflow.create_event(db, None, event_payload())


async def test_initial_status_depends_on_creator_role(db, make_user, event_payload):
    organizer = await make_user("organizer", name="Olu")
    admin = await make_user("admin", name="Ada")

    pending = await event_workflow.create_event(db, organizer, event_payload())
    approved = await event_workflow.create_event(db, admin, event_payload(title="Dean's Lecture"))

    assert pending.status == "pending"
    assert approved.status == "approved"
    assert pending.organizer_id == organizer.id
    assert pending.organizer_name == "Olu"
    assert pending.organizer.email == organizer.email
    assert pending.created_at == pending.updated_at


async def test_client_cannot_choose_owner_or_status_on_create(db, make_user, event_payload):
    organizer = await make_user("organizer")
    admin = await make_user("admin")

    event = await event_workflow.create_event(
        db,
        organizer,
        event_payload(organizer=admin.id, organizer_name="Someone Else", status="approved"),
    )

    assert event.organizer_id == organizer.id
    assert event.organizer_name == organizer.name
    assert event.status == "pending"


async def test_invalid_payload_writes_nothing(db, make_user, event_payload):
    organizer = await make_user("organizer")
    with pytest.raises(ValidationFailed) as excinfo:
        await event_workflow.create_event(db, organizer, event_payload(contact_email="nope"))
    assert excinfo.value.violations[0].field == "contactEmail"

    _, total = await EventRepository(db).find(EventFilter())
    assert total == 0


async def test_owner_updates_fields_but_never_owner_or_status(db, make_user, event_payload):
    organizer = await make_user("organizer", name="Olu")
    admin = await make_user("admin")
    event = await event_workflow.create_event(db, organizer, event_payload())
    created_at = event.created_at

    updated = await event_workflow.update_event(
        db,
        organizer,
        event.id,
        {
            "location": "Student Union Ballroom",
            "organizer": admin.id,
            "organizer_id": admin.id,
            "organizer_name": "Hijacked",
            "organizerName": "Hijacked",
            "status": "approved",
        },
    )

    assert updated.location == "Student Union Ballroom"
    assert updated.organizer_id == organizer.id
    assert updated.organizer_name == "Olu"
    assert updated.status == "pending"
    assert updated.created_at == created_at
    assert updated.updated_at >= updated.created_at


async def test_admin_edit_keeps_owner(db, make_user, event_payload):
    organizer = await make_user("organizer", name="Olu")
    admin = await make_user("admin")
    event = await event_workflow.create_event(db, organizer, event_payload())

    updated = await event_workflow.update_event(
        db, admin, event.id, {"featured": True, "organizer_name": "Ada"}
    )

    assert updated.featured is True
    assert updated.organizer_id == organizer.id
    assert updated.organizer_name == "Olu"


async def test_editing_an_approved_event_keeps_it_approved(db, make_user, event_payload):
    organizer = await make_user("organizer")
    admin = await make_user("admin")
    event = await event_workflow.create_event(db, organizer, event_payload())
    await event_workflow.change_status(db, admin, event.id, "approved")

    updated = await event_workflow.update_event(db, organizer, event.id, {"time": "19:30"})

    assert updated.time == "19:30"
    assert updated.status == "approved"


@pytest.mark.parametrize("role", ["student", "organizer"])
async def test_non_owner_cannot_update_or_delete(db, make_user, event_payload, role):
    owner = await make_user("organizer")
    intruder = await make_user(role)
    event = await event_workflow.create_event(db, owner, event_payload())

    with pytest.raises(Forbidden):
        await event_workflow.update_event(db, intruder, event.id, {"title": "Mine now"})
    with pytest.raises(Forbidden):
        await event_workflow.delete_event(db, intruder, event.id)

    stored = await event_workflow.get_event(db, event.id)
    assert stored.title == "Robotics Club Kickoff"


async def test_only_admin_changes_status(db, make_user, event_payload):
    organizer = await make_user("organizer")
    event = await event_workflow.create_event(db, organizer, event_payload())

    with pytest.raises(Forbidden):
        await event_workflow.change_status(db, organizer, event.id, "approved")


async def test_status_change_is_idempotent_and_unrestricted(db, make_user, event_payload):
    organizer = await make_user("organizer")
    admin = await make_user("admin")
    event = await event_workflow.create_event(db, organizer, event_payload())

    first = await event_workflow.change_status(db, admin, event.id, "approved")
    second = await event_workflow.change_status(db, admin, event.id, "approved")
    assert first.status == second.status == "approved"

    cancelled = await event_workflow.change_status(db, admin, event.id, "cancelled")
    assert cancelled.status == "cancelled"
    revived = await event_workflow.change_status(db, admin, event.id, "approved")
    assert revived.status == "approved"


async def test_status_change_validates_value_and_id(db, make_user, event_payload):
    admin = await make_user("admin")
    event = await event_workflow.create_event(db, admin, event_payload())

    with pytest.raises(ValidationFailed):
        await event_workflow.change_status(db, admin, event.id, "archived")
    with pytest.raises(NotFound):
        await event_workflow.change_status(db, admin, event.id + 100, "approved")


async def test_owner_and_admin_can_delete(db, make_user, event_payload):
    organizer = await make_user("organizer")
    admin = await make_user("admin")
    mine = await event_workflow.create_event(db, organizer, event_payload())
    theirs = await event_workflow.create_event(db, organizer, event_payload(title="Second"))

    await event_workflow.delete_event(db, organizer, mine.id)
    await event_workflow.delete_event(db, admin, theirs.id)

    for event_id in (mine.id, theirs.id):
        with pytest.raises(NotFound):
            await event_workflow.get_event(db, event_id)


@pytest.mark.parametrize(
    "missing_id", [987654, "987654", "not-an-id", "99999999999999999999", 2**63, 0, "-1"]
)
async def test_deleting_missing_event_is_not_found(db, make_user, missing_id):
    admin = await make_user("admin")
    with pytest.raises(NotFound):
        await event_workflow.delete_event(db, admin, missing_id)


async def test_out_of_range_id_is_not_found_for_every_operation(db, make_user):
    admin = await make_user("admin")
    huge = "99999999999999999999"

    with pytest.raises(NotFound):
        await event_workflow.get_event(db, huge)
    with pytest.raises(NotFound):
        await event_workflow.update_event(db, admin, huge, {"title": "Renamed"})
    with pytest.raises(NotFound):
        await event_workflow.change_status(db, admin, huge, "approved")


@pytest.mark.parametrize("field", ["category", "featured", "title", "date", "contactEmail"])
async def test_null_for_a_required_field_is_rejected_on_edit(db, make_user, event_payload, field):
    organizer = await make_user("organizer")
    event = await event_workflow.create_event(
        db, organizer, event_payload(category="sports", featured=True)
    )

    with pytest.raises(ValidationFailed) as excinfo:
        await event_workflow.update_event(db, organizer, event.id, {field: None})
    assert [v.field for v in excinfo.value.violations] == [field]

    stored = await event_workflow.get_event(db, event.id)
    assert stored.category == "sports"
    assert stored.featured is True
    assert stored.title == "Robotics Club Kickoff"


async def test_null_clears_an_optional_field(db, make_user, event_payload):
    organizer = await make_user("organizer")
    event = await event_workflow.create_event(
        db, organizer, event_payload(contact_phone="555-0100", max_attendees=30)
    )

    updated = await event_workflow.update_event(
        db, organizer, event.id, {"contactPhone": None, "maxAttendees": ""}
    )

    assert updated.contact_phone is None
    assert updated.max_attendees is None
    assert updated.category == "club"


async def test_store_failure_rolls_back_and_raises_store_unavailable(
    db, make_user, event_payload, monkeypatch
):
    organizer = await make_user("organizer")
    event = await event_workflow.create_event(db, organizer, event_payload())
    rollbacks = []

    async def failing_execute(*args, **kwargs):
        raise OperationalError("UPDATE events", {}, Exception("database is locked"))

    async def recording_rollback():
        rollbacks.append(True)

    monkeypatch.setattr(db, "execute", failing_execute)
    monkeypatch.setattr(db, "rollback", recording_rollback)

    with pytest.raises(StoreUnavailable) as excinfo:
        await EventRepository(db).update_by_id(event.id, {"location": "Gym"})

    assert rollbacks == [True]
    assert excinfo.value.status_code == 500
    assert excinfo.value.to_dict() == {"success": False, "message": "Server error"}
    assert isinstance(excinfo.value.__cause__, OperationalError)
