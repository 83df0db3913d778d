"""Tests for patient record schemas."""

from datetime import date

import pytest
from pydantic import ValidationError

from medi_scribe.core.schemas import (
    AppointmentCreate,
    AppointmentUpdate,
    ConsultationCreate,
    PatientCreate,
    PatientUpdate,
    age_from_dob,
)


class TestAgeFromDob:
    def test_birthday_passed(self):
        assert age_from_dob(date(1980, 3, 1), today=date(2025, 6, 1)) == 45

    def test_birthday_not_yet(self):
        assert age_from_dob(date(1980, 12, 1), today=date(2025, 6, 1)) == 44

    def test_on_birthday(self):
        assert age_from_dob(date(1980, 6, 1), today=date(2025, 6, 1)) == 45


class TestPatientCreate:
    def test_minimal(self):
        p = PatientCreate(name="Ana Ruiz", gender="F", allergies="Negadas")
        assert p.age is None
        assert p.invoice is False

    def test_age_derived_from_dob(self):
        p = PatientCreate(name="Ana", gender="F", allergies="Negadas", dob=date(2000, 1, 1))
        assert p.age == age_from_dob(date(2000, 1, 1))

    def test_explicit_age_kept(self):
        p = PatientCreate(name="Ana", gender="F", allergies="Negadas", dob=date(2000, 1, 1), age=3)
        assert p.age == 3

    @pytest.mark.parametrize("field", ["name", "gender", "allergies"])
    def test_required_text_not_blank(self, field):
        data = {"name": "Ana", "gender": "F", "allergies": "Negadas", field: "   "}
        with pytest.raises(ValidationError):
            PatientCreate(**data)

    def test_allergies_required(self):
        with pytest.raises(ValidationError):
            PatientCreate(name="Ana", gender="F")

    def test_ids_uppercased(self):
        p = PatientCreate(
            name="Ana", gender="F", allergies="Penicilina",
            curp="pegj800101hdfrrn09", rfc="pegj800101ab1",
        )
        assert p.curp == "PEGJ800101HDFRRN09"
        assert p.rfc == "PEGJ800101AB1"

    def test_curp_too_long(self):
        with pytest.raises(ValidationError):
            PatientCreate(name="Ana", gender="F", allergies="Negadas", curp="X" * 19)

    def test_text_trimmed(self):
        p = PatientCreate(name="  Ana Ruiz ", gender="F", allergies="Negadas")
        assert p.name == "Ana Ruiz"


class TestPatientUpdate:
    def test_partial(self):
        update = PatientUpdate(phone="5512345678")
        assert update.model_dump(exclude_unset=True) == {"phone": "5512345678"}

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            PatientUpdate(name="")

    @pytest.mark.parametrize("field", ["name", "gender", "allergies", "invoice", "active"])
    def test_required_column_cannot_be_nulled(self, field):
        with pytest.raises(ValidationError, match="cannot be null"):
            PatientUpdate.model_validate({field: None})

    def test_optional_column_can_be_nulled(self):
        update = PatientUpdate.model_validate({"non_critical_allergies": None, "rfc": None})
        assert update.model_dump(exclude_unset=True) == {
            "non_critical_allergies": None, "rfc": None
        }

    def test_ids_uppercased(self):
        update = PatientUpdate(curp=" abcd900520hdfxyz09 ", rfc="abcd900520ab1")
        assert update.curp == "ABCD900520HDFXYZ09"
        assert update.rfc == "ABCD900520AB1"

    @pytest.mark.parametrize("field,value", [("curp", "X" * 19), ("rfc", "X" * 14)])
    def test_id_length_limits(self, field, value):
        with pytest.raises(ValidationError):
            PatientUpdate.model_validate({field: value})


class TestConsultationAndAppointment:
    def test_consultation_defaults(self):
        c = ConsultationCreate()
        assert c.status.value == "pending"
        assert c.patient_id is None

    def test_consultation_bad_status(self):
        with pytest.raises(ValidationError):
            ConsultationCreate(status="deleted")

    def test_appointment_defaults(self):
        a = AppointmentCreate(start_time="2025-11-28T16:00:00")
        assert a.title == "Consulta General"
        assert a.duration_minutes == 30

    @pytest.mark.parametrize("minutes", [0, 481])
    def test_appointment_duration_bounds(self, minutes):
        with pytest.raises(ValidationError):
            AppointmentCreate(start_time="2025-11-28T16:00:00", duration_minutes=minutes)

    def test_appointment_update_cannot_null_start(self):
        with pytest.raises(ValidationError, match="start_time cannot be null"):
            AppointmentUpdate.model_validate({"start_time": None})

    def test_appointment_update_can_unlink_patient(self):
        update = AppointmentUpdate.model_validate({"patient_id": None, "notes": None})
        assert update.model_dump(exclude_unset=True) == {"patient_id": None, "notes": None}
