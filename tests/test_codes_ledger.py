# tests/test_codes_ledger.py
# =======================
# 🎟️ Libro de códigos: normalización, validación y contadores de cupo
# =======================

from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from app.crud import codes_crud
from app.errors import EmptyInput, Exhausted, Inactive, NotFound, StoreUnavailable
from app.schemas import CodeSnapshot, ValidationMode


# =======================
# 🧼 normalize_code
# =======================
def test_normalize_trims_and_uppercases():
    assert codes_crud.normalize_code("  ab12cd34 ") == "AB12CD34"


@pytest.mark.parametrize("raw", [None, "", "   ", 1234])
def test_normalize_rejects_blank_or_non_text(raw):
    with pytest.raises(EmptyInput):
        codes_crud.normalize_code(raw)


def test_blank_code_never_reaches_the_store():
    db = MagicMock()
    with pytest.raises(EmptyInput) as exc:
        codes_crud.validate(db, "   ", ValidationMode.access)
    assert exc.value.message == "Por favor, introduce un código de invitación válido."
    db.query.assert_not_called()


# =======================
# ✅ validate
# =======================
def test_validate_is_case_and_space_insensitive(db, make_code):
    make_code(code="AB12CD34", max_guests=2)
    snap = codes_crud.validate(db, " ab12cd34 ", ValidationMode.rsvp)
    assert snap.code == "AB12CD34"
    assert snap.max_guests == 2
    assert snap.used_guests == 0
    assert snap.remaining_guests == 2


def test_validate_unknown_code(db):
    with pytest.raises(NotFound) as exc:
        codes_crud.validate(db, "ZZZZ9999")
    assert exc.value.message == "El código de invitación no es válido."


@pytest.mark.parametrize("mode", [ValidationMode.access, ValidationMode.rsvp])
def test_validate_inactive_in_both_modes(db, make_code, mode):
    make_code(code="OFF00001", is_active=False)
    with pytest.raises(Inactive) as exc:
        codes_crud.validate(db, "off00001", mode)
    assert exc.value.message == "Este código de invitación ya no está activo."


def test_exhausted_code_fails_rsvp_mode(db, make_code):
    make_code(code="FULL0001", max_guests=3, used_guests=3)
    with pytest.raises(Exhausted) as exc:
        codes_crud.validate(db, "FULL0001", ValidationMode.rsvp)
    assert "máximo de invitados" in exc.value.message


def test_exhausted_code_still_grants_access(db, make_code):
    make_code(code="FULL0001", max_guests=3, used_guests=3)
    snap = codes_crud.validate(db, "FULL0001", ValidationMode.access)
    assert snap.remaining_guests == 0


def test_validate_default_mode_is_rsvp(db, make_code):
    make_code(code="FULL0001", max_guests=1, used_guests=1)
    with pytest.raises(Exhausted):
        codes_crud.validate(db, "FULL0001")


def test_store_failure_maps_to_store_unavailable():
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT 1", {}, Exception("conexión perdida"))
    with pytest.raises(StoreUnavailable) as exc:
        codes_crud.validate(db, "AB12CD34", ValidationMode.access)
    assert exc.value.message.startswith("Error al validar el código")


# =======================
# 🔢 increment_used / reserve_seats
# =======================
def test_increment_used_is_signed_and_needs_commit(db, make_code, reload, code_model):
    obj = make_code(code="CNT00001", max_guests=5)
    assert codes_crud.increment_used(db, obj.id, 3) == 1
    db.commit()
    assert reload(code_model, obj.id).used_guests == 3

    codes_crud.increment_used(db, obj.id, -2)
    db.commit()
    assert reload(code_model, obj.id).used_guests == 1


def test_increment_used_unknown_id_touches_nothing(db):
    assert codes_crud.increment_used(db, 9999, 1) == 0


def test_reserve_seats_respects_capacity(db, make_code, reload, code_model):
    obj = make_code(code="RSV00001", max_guests=3, used_guests=1)
    assert codes_crud.reserve_seats(db, obj.id, 2) is True
    db.commit()
    assert reload(code_model, obj.id).used_guests == 3

    assert codes_crud.reserve_seats(db, obj.id, 1) is False
    db.commit()
    assert reload(code_model, obj.id).used_guests == 3


# =======================
# 📸 CodeSnapshot
# =======================
def test_snapshot_derives_remaining_and_never_negative():
    snap = CodeSnapshot.model_validate(
        {"id": 1, "code": "X1", "max_guests": 2, "used_guests": 5, "remaining_guests": 99}
    )
    assert snap.remaining_guests == 0


def test_snapshot_is_immutable():
    snap = CodeSnapshot(id=1, code="X1", max_guests=2)
    with pytest.raises(ValidationError):
        snap.used_guests = 1


def test_snapshot_from_orm_row(db, make_code):
    obj = make_code(code="ORM00001", max_guests=4, used_guests=1, assigned_to="Tía Carmen")
    snap = codes_crud.to_snapshot(obj)
    assert snap.id == obj.id
    assert snap.assigned_to == "Tía Carmen"
    assert snap.remaining_guests == 3
