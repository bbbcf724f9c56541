# tests/test_admin_ops.py
# =======================
# 👑 Operaciones del panel: alta/edición/borrado de códigos, estadísticas y reconciliación
# =======================

import pytest

from app.crud import admin_crud, codes_crud, rsvps_crud
from app.errors import CodeAlreadyExists, InvalidInput, NotFound
from app.models import RSVP, AttendanceEnum
from app.schemas import RSVPForm, ValidationMode
from app.session import SessionContext


def _confirm(db, code: str, guests: int, attendance: str = "si"):
    session = SessionContext()
    session.hold(codes_crud.validate(db, code, ValidationMode.access))
    return rsvps_crud.submit(
        db,
        session,
        RSVPForm(name="Invitado", email="inv@example.com", guests_count=guests, attendance=attendance),
    )


# =======================
# 🆕 Alta
# =======================
def test_generate_code_alphabet_and_length():
    code = admin_crud.generate_code()
    assert len(code) == 8
    assert set(code) <= set(admin_crud.CODE_ALPHABET)
    assert len(admin_crud.generate_code(12)) == 12


def test_create_code_generates_when_blank(db):
    obj = admin_crud.create_code(db, code="  ", assigned_to=" Familia Ruiz ", max_guests=4)
    assert len(obj.code) == 8
    assert obj.assigned_to == "Familia Ruiz"
    assert obj.max_guests == 4
    assert obj.used_guests == 0
    assert obj.is_active is True
    assert obj.created_at is not None


def test_create_code_normalizes_operator_code(db):
    obj = admin_crud.create_code(db, code=" boda-2025 ", max_guests=2)
    assert obj.code == "BODA-2025"


def test_create_duplicate_code_is_rejected(db, make_code):
    make_code(code="AB12CD34")
    with pytest.raises(CodeAlreadyExists) as exc:
        admin_crud.create_code(db, code="ab12cd34")
    assert exc.value.message == "Este código ya existe. Por favor, usa otro código."


def test_generated_code_skips_collisions(db, make_code, monkeypatch):
    make_code(code="TAKEN001")
    candidates = iter(["TAKEN001", "FREE0001"])
    monkeypatch.setattr(admin_crud, "generate_code", lambda length=8: next(candidates))
    assert admin_crud.create_code(db).code == "FREE0001"


# =======================
# ✏️ Edición / activación / borrado
# =======================
def test_update_only_allowed_fields(db, make_code):
    obj = make_code(code="UPD00001", max_guests=2)
    updated = admin_crud.update_code(
        db, obj.id, {"max_guests": 5, "assigned_to": "Nuevo", "code": "HACK0001", "used_guests": 9},
    )
    assert updated.max_guests == 5
    assert updated.assigned_to == "Nuevo"
    assert updated.code == "UPD00001"
    assert updated.used_guests == 0
    assert updated.updated_at is not None


def test_update_without_valid_fields(db, make_code):
    obj = make_code(code="UPD00002")
    with pytest.raises(InvalidInput) as exc:
        admin_crud.update_code(db, obj.id, {"code": "X"})
    assert exc.value.message == "No hay campos válidos para actualizar."


def test_update_unknown_code(db):
    with pytest.raises(NotFound):
        admin_crud.update_code(db, 999, {"max_guests": 2})


def test_toggle_code(db, make_code):
    obj = make_code(code="TOG00001")
    assert admin_crud.toggle_code(db, obj.id, False).is_active is False
    assert admin_crud.toggle_code(db, obj.id, True).is_active is True


def test_delete_code_keeps_its_rsvps(db, make_code):
    obj = make_code(code="DEL00001", max_guests=2)
    _confirm(db, "DEL00001", 2)

    admin_crud.delete_code(db, obj.id)

    assert codes_crud.get_by_code(db, "DEL00001") is None
    assert [r.code for r in rsvps_crud.list_rsvps(db)] == ["DEL00001"]
    with pytest.raises(NotFound):
        admin_crud.delete_code(db, obj.id)


def test_list_codes(db, make_code):
    make_code(code="LST00001")
    make_code(code="LST00002")
    assert [c.code for c in admin_crud.list_codes(db)] == ["LST00001", "LST00002"]


# =======================
# 📊 Estadísticas
# =======================
def test_statistics_on_empty_store(db):
    stats = admin_crud.get_statistics(db)
    assert stats.codes.total == 0
    assert stats.rsvps.total == 0
    assert stats.guests_per_code == {}


def test_statistics(db, make_code):
    make_code(code="STA00001", max_guests=4)
    make_code(code="STA00002", max_guests=2)
    make_code(code="STA00003", max_guests=3, is_active=False)
    _confirm(db, "STA00001", 3)
    _confirm(db, "STA00002", 2, attendance="no")
    db.add(RSVP(code="", code_id=None, name="Manual", email="m@example.com",
                guests_count=1, attendance=AttendanceEnum.will_attend))
    db.commit()

    stats = admin_crud.get_statistics(db)

    assert stats.codes.total == 3
    assert stats.codes.active == 2
    assert stats.codes.inactive == 1
    assert stats.codes.max_guests == 9
    assert stats.codes.used_guests == 3
    assert stats.codes.remaining_capacity == 6

    assert stats.rsvps.total == 3
    assert stats.rsvps.attending == 2
    assert stats.rsvps.not_attending == 1
    assert stats.rsvps.total_confirmed_guests == 4
    assert stats.rsvps.total_not_attending_guests == 2
    assert stats.guests_per_code == {"STA00001": 3, admin_crud.NO_CODE_LABEL: 1}


# =======================
# 🧮 Reconciliación
# =======================
def test_reconcile_fixes_drift(db, make_code, reload, code_model):
    obj = make_code(code="REC00001", max_guests=5)
    _confirm(db, "REC00001", 2)
    codes_crud.increment_used(db, obj.id, 3)       # Deriva: alguien tocó el contador a mano.
    db.commit()
    assert reload(code_model, obj.id).used_guests == 5

    fixed = admin_crud.reconcile_used(db, obj.id)
    assert fixed.used_guests == 2


def test_reconcile_ignores_not_attending(db, make_code):
    obj = make_code(code="REC00002", max_guests=5, used_guests=4)
    _confirm(db, "REC00002", 1, attendance="no")
    assert admin_crud.reconcile_used(db, obj.id).used_guests == 0


def test_reconcile_unknown_code(db):
    with pytest.raises(NotFound):
        admin_crud.reconcile_used(db, 31337)


def test_capacity_cannot_drop_below_confirmed_seats(db, make_code, reload, code_model):
    obj = make_code(code="UPD00003", max_guests=4, used_guests=3)
    with pytest.raises(InvalidInput) as exc:
        admin_crud.update_code(db, obj.id, {"max_guests": 2, "assigned_to": "Otro"})
    assert "(3)" in exc.value.message

    row = reload(code_model, obj.id)
    assert row.max_guests == 4
    assert row.assigned_to == "Familia Pérez"
    assert admin_crud.update_code(db, obj.id, {"max_guests": 3}).remaining_guests == 0
